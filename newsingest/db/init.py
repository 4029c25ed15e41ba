"""Database initialization and schema management."""

from typing import Any, Dict

from psycopg.errors import DatabaseError

from ..utils.logging import get_logger
from .connection import get_connection

logger = get_logger("db")

SCHEMA_SQL = """
-- Categories table
CREATE TABLE IF NOT EXISTS categories (
    id SERIAL PRIMARY KEY,
    slug TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT categories_slug_key UNIQUE (slug)
);

-- Sources table
CREATE TABLE IF NOT EXISTS sources (
    id SERIAL PRIMARY KEY,
    mediastack_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    url TEXT,
    category TEXT,
    country TEXT,
    language TEXT,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    last_fetched_at TIMESTAMPTZ,
    metadata JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT sources_mediastack_id_key UNIQUE (mediastack_id)
);

-- Articles table
CREATE TABLE IF NOT EXISTS articles (
    id SERIAL PRIMARY KEY,
    url TEXT NOT NULL,
    slug TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    content TEXT,
    author TEXT,
    image_url TEXT,
    source TEXT NOT NULL REFERENCES sources(mediastack_id),
    category TEXT NOT NULL REFERENCES categories(slug),
    country TEXT,
    language TEXT,
    published_at TIMESTAMPTZ NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    is_featured BOOLEAN NOT NULL DEFAULT FALSE,
    view_count INTEGER NOT NULL DEFAULT 0 CHECK (view_count >= 0),
    sentiment_score NUMERIC(3, 2) CHECK (sentiment_score BETWEEN -1 AND 1),
    tags JSONB,
    keywords JSONB,
    metadata JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT articles_url_key UNIQUE (url),
    CONSTRAINT articles_slug_key UNIQUE (slug)
);

-- Fetch run log
CREATE TABLE IF NOT EXISTS fetch_runs (
    id SERIAL PRIMARY KEY,
    endpoint TEXT NOT NULL,
    parameters JSONB NOT NULL DEFAULT '{}'::jsonb,
    profile TEXT,
    triggered_by TEXT NOT NULL DEFAULT 'manual',
    status TEXT NOT NULL DEFAULT 'running'
        CHECK (status IN ('running', 'success', 'partial_success', 'failed', 'rate_limited')),
    total_results INTEGER NOT NULL DEFAULT 0,
    fetched_results INTEGER NOT NULL DEFAULT 0,
    new_articles INTEGER NOT NULL DEFAULT 0,
    duplicate_articles INTEGER NOT NULL DEFAULT 0,
    invalid_articles INTEGER NOT NULL DEFAULT 0,
    failed_articles INTEGER NOT NULL DEFAULT 0,
    execution_time_ms INTEGER,
    api_response_time_ms INTEGER,
    db_processing_time_ms INTEGER,
    http_status_code INTEGER,
    error_message TEXT,
    error_details JSONB,
    started_at TIMESTAMPTZ NOT NULL,
    completed_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_categories_slug_active ON categories(slug, is_active);
CREATE INDEX IF NOT EXISTS idx_sources_country_active ON sources(country, is_active);
CREATE INDEX IF NOT EXISTS idx_sources_language_active ON sources(language, is_active);
CREATE INDEX IF NOT EXISTS idx_sources_category_active ON sources(category, is_active);
CREATE INDEX IF NOT EXISTS idx_articles_published_active ON articles(published_at, is_active);
CREATE INDEX IF NOT EXISTS idx_articles_category_listing ON articles(category, is_active, published_at);
CREATE INDEX IF NOT EXISTS idx_articles_source_active ON articles(source, is_active);
CREATE INDEX IF NOT EXISTS idx_articles_featured ON articles(is_featured, published_at);
CREATE INDEX IF NOT EXISTS idx_fetch_runs_status_started ON fetch_runs(status, started_at);
CREATE INDEX IF NOT EXISTS idx_fetch_runs_started_at ON fetch_runs(started_at);

-- Update trigger function
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ language 'plpgsql';

-- Create update triggers
CREATE OR REPLACE TRIGGER update_categories_updated_at BEFORE UPDATE ON categories
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_sources_updated_at BEFORE UPDATE ON sources
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_articles_updated_at BEFORE UPDATE ON articles
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_fetch_runs_updated_at BEFORE UPDATE ON fetch_runs
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:  # noqa: BLE001 - any failure means "not reachable"
        logger.error("Database connection failed: %s", e)
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            with conn.transaction():
                conn.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
