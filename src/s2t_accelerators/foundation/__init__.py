"""Foundation layer: configuration, errors, input shapes and the operation registry."""
