"""pgschema schema-file tooling."""
