from .files import list_registered_schemas, load_directory, load_file, schema

__all__ = ["load_file", "load_directory", "schema", "list_registered_schemas"]
