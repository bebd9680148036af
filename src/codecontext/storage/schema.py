"""Database schema for the local SQLite vector store."""

SCHEMA = """
-- Collections table: one row per project collection
CREATE TABLE IF NOT EXISTS collections (
    name TEXT PRIMARY KEY,
    dimension INTEGER NOT NULL
);

-- Entities table: float32 vector blobs with JSON metadata
CREATE TABLE IF NOT EXISTS entities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    collection TEXT NOT NULL,
    file_path TEXT,
    embedding BLOB NOT NULL,
    metadata TEXT NOT NULL,
    FOREIGN KEY (collection) REFERENCES collections(name)
);

-- Indexes for efficient queries
CREATE INDEX IF NOT EXISTS idx_entities_collection ON entities(collection);
CREATE INDEX IF NOT EXISTS idx_entities_file ON entities(collection, file_path);
"""
