"""Shared configuration, errors and error rendering."""
