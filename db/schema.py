# SQL schema for WordCoach database

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Word packages
CREATE TABLE IF NOT EXISTS packages (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    level TEXT NOT NULL DEFAULT 'beginner',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Concepts (immutable word pairs)
CREATE TABLE IF NOT EXISTS concepts (
    id INTEGER PRIMARY KEY,
    package_id TEXT NOT NULL,
    front_text TEXT NOT NULL,
    back_text TEXT NOT NULL,
    level TEXT NOT NULL DEFAULT 'beginner',
    category TEXT,
    example_front TEXT,
    example_back TEXT,
    pronunciation TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (package_id) REFERENCES packages (id) ON DELETE CASCADE
);

-- Triage decisions, one per user and concept
CREATE TABLE IF NOT EXISTS selections (
    user_id TEXT NOT NULL,
    concept_id INTEGER NOT NULL,
    package_id TEXT NOT NULL,
    status TEXT NOT NULL CHECK(status IN ('selected', 'hidden', 'mastered')),
    decided_at TEXT NOT NULL,
    decided_day TEXT NOT NULL,
    PRIMARY KEY (user_id, concept_id),
    FOREIGN KEY (concept_id) REFERENCES concepts (id) ON DELETE CASCADE
);

-- Scheduling state per user, concept and study direction
CREATE TABLE IF NOT EXISTS study_progress (
    user_id TEXT NOT NULL,
    concept_id INTEGER NOT NULL,
    direction TEXT NOT NULL CHECK(direction IN ('front_to_back', 'back_to_front')),
    phase TEXT NOT NULL DEFAULT 'learning' CHECK(phase IN ('learning', 'review', 'mastered')),
    interval_days REAL NOT NULL DEFAULT 0 CHECK(interval_days >= 0),
    ease_factor REAL NOT NULL DEFAULT 2.5,
    due_at TEXT NOT NULL,
    lapses INTEGER NOT NULL DEFAULT 0 CHECK(lapses >= 0),
    review_count INTEGER NOT NULL DEFAULT 0 CHECK(review_count >= 0),
    last_review_at TEXT,
    last_review_day TEXT,
    mastered_at TEXT,
    PRIMARY KEY (user_id, concept_id, direction),
    FOREIGN KEY (concept_id) REFERENCES concepts (id) ON DELETE CASCADE
);

-- Per-day activity ledger
CREATE TABLE IF NOT EXISTS daily_ledger (
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    words_studied INTEGER NOT NULL DEFAULT 0,
    correct_answers INTEGER NOT NULL DEFAULT 0,
    total_answers INTEGER NOT NULL DEFAULT 0,
    study_time_ms INTEGER NOT NULL DEFAULT 0,
    streak_count INTEGER NOT NULL DEFAULT 1,
    goal_achieved INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (user_id, date)
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_concepts_package ON concepts (package_id, position);
CREATE INDEX IF NOT EXISTS idx_selections_status ON selections (user_id, status);
CREATE INDEX IF NOT EXISTS idx_selections_day ON selections (user_id, decided_day);
CREATE INDEX IF NOT EXISTS idx_progress_due ON study_progress (user_id, direction, due_at);
CREATE INDEX IF NOT EXISTS idx_progress_review_day ON study_progress (user_id, last_review_day);
CREATE INDEX IF NOT EXISTS idx_ledger_date ON daily_ledger (date);
"""
