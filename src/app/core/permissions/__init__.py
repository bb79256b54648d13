"""Access resolution, role hierarchy and request scope dependencies."""
