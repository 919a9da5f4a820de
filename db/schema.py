# SQL schema for Quran Study Hub database

SCHEMA_VERSION = 3

SCHEMA_SQL = """
-- Accounts
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user' CHECK(role IN ('user', 'admin')),
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Surah metadata
CREATE TABLE IF NOT EXISTS surahs (
    id INTEGER PRIMARY KEY CHECK(id BETWEEN 1 AND 114),
    arabic_name TEXT NOT NULL,
    english_name TEXT NOT NULL,
    ayah_count INTEGER NOT NULL,
    revelation_type TEXT CHECK(revelation_type IN ('Meccan', 'Medinan'))
);

-- Canonical verses
CREATE TABLE IF NOT EXISTS ayahs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    surah_id INTEGER NOT NULL,
    ayah_number INTEGER NOT NULL CHECK(ayah_number >= 1),
    arabic_text TEXT NOT NULL,
    UNIQUE (surah_id, ayah_number),
    FOREIGN KEY (surah_id) REFERENCES surahs (id) ON DELETE CASCADE
);

-- Translations (moderated, versioned)
CREATE TABLE IF NOT EXISTS translations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ayah_id INTEGER NOT NULL,
    language TEXT NOT NULL,
    text TEXT NOT NULL,
    version_name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN ('pending', 'approved', 'rejected')),
    is_default INTEGER NOT NULL DEFAULT 0,
    author_kind TEXT NOT NULL DEFAULT 'contributor' CHECK(author_kind IN ('contributor', 'admin', 'import')),
    contributor_id INTEGER,
    decided_by INTEGER,
    decided_at TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    FOREIGN KEY (ayah_id) REFERENCES ayahs (id) ON DELETE CASCADE,
    FOREIGN KEY (contributor_id) REFERENCES users (id) ON DELETE SET NULL,
    FOREIGN KEY (decided_by) REFERENCES users (id) ON DELETE SET NULL
);

-- Tafsir, per ayah or per surah
CREATE TABLE IF NOT EXISTS tafasir (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    surah_id INTEGER,
    ayah_id INTEGER,
    text TEXT NOT NULL,
    version_name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN ('pending', 'approved', 'rejected')),
    is_default INTEGER NOT NULL DEFAULT 0,
    author_kind TEXT NOT NULL DEFAULT 'contributor' CHECK(author_kind IN ('contributor', 'admin', 'import')),
    contributor_id INTEGER,
    decided_by INTEGER,
    decided_at TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    CHECK (surah_id IS NOT NULL OR ayah_id IS NOT NULL),
    FOREIGN KEY (surah_id) REFERENCES surahs (id) ON DELETE CASCADE,
    FOREIGN KEY (ayah_id) REFERENCES ayahs (id) ON DELETE CASCADE,
    FOREIGN KEY (contributor_id) REFERENCES users (id) ON DELETE SET NULL,
    FOREIGN KEY (decided_by) REFERENCES users (id) ON DELETE SET NULL
);

-- Word-by-word glosses
CREATE TABLE IF NOT EXISTS word_meanings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ayah_id INTEGER NOT NULL,
    word_index INTEGER NOT NULL CHECK(word_index >= 0),
    arabic_word TEXT NOT NULL,
    meaning TEXT NOT NULL,
    grammar_notes TEXT,
    version_name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN ('pending', 'approved', 'rejected')),
    is_default INTEGER NOT NULL DEFAULT 0,
    author_kind TEXT NOT NULL DEFAULT 'contributor' CHECK(author_kind IN ('contributor', 'admin', 'import')),
    contributor_id INTEGER,
    decided_by INTEGER,
    decided_at TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    FOREIGN KEY (ayah_id) REFERENCES ayahs (id) ON DELETE CASCADE,
    FOREIGN KEY (contributor_id) REFERENCES users (id) ON DELETE SET NULL,
    FOREIGN KEY (decided_by) REFERENCES users (id) ON DELETE SET NULL
);

-- Bookmarks
CREATE TABLE IF NOT EXISTS bookmarks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    ayah_id INTEGER NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE (user_id, ayah_id),
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
    FOREIGN KEY (ayah_id) REFERENCES ayahs (id) ON DELETE CASCADE
);

-- Private notes
CREATE TABLE IF NOT EXISTS private_notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    ayah_id INTEGER NOT NULL,
    note TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE (user_id, ayah_id),
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
    FOREIGN KEY (ayah_id) REFERENCES ayahs (id) ON DELETE CASCADE
);

-- Hifz (memorization) progress
CREATE TABLE IF NOT EXISTS hifz_progress (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    surah_id INTEGER NOT NULL,
    ayah_number INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'not_started' CHECK(status IN ('not_started', 'learning', 'memorized', 'review')),
    srs_level INTEGER NOT NULL DEFAULT 0 CHECK(srs_level >= 0),
    last_reviewed TEXT,
    next_review TEXT,
    UNIQUE (user_id, surah_id, ayah_number),
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
    FOREIGN KEY (surah_id) REFERENCES surahs (id) ON DELETE CASCADE
);

-- Reading log
CREATE TABLE IF NOT EXISTS user_reading_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    ayah_id INTEGER NOT NULL,
    read_at TEXT NOT NULL DEFAULT (datetime('now')),
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
    FOREIGN KEY (ayah_id) REFERENCES ayahs (id) ON DELETE CASCADE
);

-- Site settings
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_ayahs_surah ON ayahs (surah_id, ayah_number);
CREATE INDEX IF NOT EXISTS idx_translations_ayah ON translations (ayah_id, status);
CREATE INDEX IF NOT EXISTS idx_translations_status ON translations (status, created_at);
CREATE INDEX IF NOT EXISTS idx_tafasir_ayah ON tafasir (ayah_id, status);
CREATE INDEX IF NOT EXISTS idx_tafasir_surah ON tafasir (surah_id, status);
CREATE INDEX IF NOT EXISTS idx_tafasir_status ON tafasir (status, created_at);
CREATE INDEX IF NOT EXISTS idx_word_meanings_ayah ON word_meanings (ayah_id, word_index, status);
CREATE INDEX IF NOT EXISTS idx_word_meanings_status ON word_meanings (status, created_at);
CREATE INDEX IF NOT EXISTS idx_bookmarks_user ON bookmarks (user_id);
CREATE INDEX IF NOT EXISTS idx_private_notes_user ON private_notes (user_id);
CREATE INDEX IF NOT EXISTS idx_hifz_user_next ON hifz_progress (user_id, next_review);
CREATE INDEX IF NOT EXISTS idx_reading_log_user_ts ON user_reading_log (user_id, read_at);
"""
