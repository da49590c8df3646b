"""Interactive and one-shot command line for CrudFs."""
