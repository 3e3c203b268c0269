"""Clock and identity helpers shared by the store and the switcher."""
