from __future__ import annotations


def main() -> int:
    from tabular_review.runtime.lifecycle import main as runtime_main

    return runtime_main()


if __name__ == "__main__":
    raise SystemExit(main())
