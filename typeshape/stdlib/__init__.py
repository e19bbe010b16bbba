"""Standard library of typeshape components: ready-made type-information providers."""
