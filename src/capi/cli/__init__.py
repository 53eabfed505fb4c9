"""capi command-line interface."""
