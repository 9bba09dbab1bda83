"""Folio: account and document records with a soft-delete lifecycle."""
