"""Resource types, document access, and text formatting for cluster objects."""
