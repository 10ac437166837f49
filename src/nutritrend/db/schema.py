"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Daily weigh-ins with derived trend weight (EWMA, 7 day half-life)
CREATE TABLE IF NOT EXISTS weight_entries (
    entry_id TEXT PRIMARY KEY,
    date DATE NOT NULL UNIQUE,
    weight_kg REAL NOT NULL CHECK(weight_kg >= 30 AND weight_kg <= 300),
    trend_weight_kg REAL,
    notes TEXT,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_weight_entries_date ON weight_entries(date);

-- Macro cycling configuration (singleton row, id = 1)
CREATE TABLE IF NOT EXISTS macro_cycle_config (
    id INTEGER PRIMARY KEY CHECK(id = 1),
    enabled BOOLEAN NOT NULL DEFAULT 0,
    pattern_type TEXT NOT NULL DEFAULT 'training_rest',
    marked_days TEXT NOT NULL DEFAULT '[]',
    day_targets TEXT NOT NULL DEFAULT '{}',
    locked_days TEXT NOT NULL DEFAULT '[]',
    redistribution_start_day INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL,
    last_modified TIMESTAMP NOT NULL
);

-- Per-date target overrides (replace, never merge)
CREATE TABLE IF NOT EXISTS macro_cycle_overrides (
    override_id TEXT PRIMARY KEY,
    date DATE NOT NULL UNIQUE,
    calories INTEGER NOT NULL,
    protein REAL NOT NULL,
    carbs REAL NOT NULL,
    fat REAL NOT NULL,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_macro_cycle_overrides_date ON macro_cycle_overrides(date);

-- Quick-add totals (one row per imported meal)
CREATE TABLE IF NOT EXISTS quick_add_entries (
    entry_id TEXT PRIMARY KEY,
    date DATE NOT NULL,
    meal_type TEXT NOT NULL CHECK(meal_type IN ('breakfast', 'lunch', 'dinner', 'snack')),
    calories REAL NOT NULL,
    protein REAL NOT NULL DEFAULT 0,
    carbs REAL NOT NULL DEFAULT 0,
    fat REAL NOT NULL DEFAULT 0,
    description TEXT,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_quick_add_entries_date ON quick_add_entries(date);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
