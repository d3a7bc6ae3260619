"""Schema synchronization and field templating core for a protobuf-to-BigQuery sink."""
