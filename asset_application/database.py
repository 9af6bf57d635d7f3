"""
Database layer - users, assets, categories and maintenance tasks
Every asset-side query is scoped to the owning user_id
"""
import sqlite3
from datetime import date, datetime
from typing import Dict, List, Optional
import bcrypt
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)

# Overridden by create_app from app.config['DATABASE_PATH']
DATABASE_PATH = "asset_tracker.db"

ASSET_FIELDS = [
    'asset_code', 'name', 'category', 'location', 'status', 'assigned_to',
    'purchase_date', 'purchase_price', 'current_value', 'useful_life',
    'assigned_invoice', 'description', 'serial_number',
]

MAINTENANCE_FIELDS = ['asset_id', 'asset_name', 'task', 'due_date', 'priority', 'completed']


@contextmanager
def get_db_connection():
    """Context manager for database connections"""
    conn = sqlite3.connect(str(DATABASE_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def configure(database_path) -> None:
    """Point the data layer at a database file"""
    global DATABASE_PATH
    DATABASE_PATH = str(database_path)


def init_database():
    """Initialize database tables"""
    with get_db_connection() as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                user_id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                full_name TEXT,
                company_name TEXT,
                is_active INTEGER DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS assets (
                asset_id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                asset_code TEXT NOT NULL,
                name TEXT NOT NULL,
                category TEXT,
                location TEXT,
                status TEXT DEFAULT 'active',
                assigned_to TEXT,
                purchase_date DATE,
                purchase_price REAL DEFAULT 0,
                current_value REAL,
                useful_life INTEGER,
                assigned_invoice TEXT,
                description TEXT,
                serial_number TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, asset_code),
                FOREIGN KEY (user_id) REFERENCES users(user_id)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS categories (
                category_id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                is_active INTEGER DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, name),
                FOREIGN KEY (user_id) REFERENCES users(user_id)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS maintenance_tasks (
                task_id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                asset_id INTEGER,
                asset_name TEXT,
                task TEXT NOT NULL,
                due_date DATE NOT NULL,
                priority TEXT DEFAULT 'medium',
                completed INTEGER DEFAULT 0,
                completed_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(user_id),
                FOREIGN KEY (asset_id) REFERENCES assets(asset_id) ON DELETE SET NULL
            )
        """)

        create_audit_table(conn)

        # Databases created before useful_life was tracked
        try:
            conn.execute("ALTER TABLE assets ADD COLUMN useful_life INTEGER")
        except sqlite3.OperationalError:
            pass  # Column already exists

        logger.info("✅ Database initialized (users, assets, categories, maintenance_tasks)")


def create_audit_table(conn):
    """Create the asset_data_audit table"""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS asset_data_audit (
            audit_id INTEGER PRIMARY KEY AUTOINCREMENT,
            asset_id INTEGER NOT NULL,
            changed_by_user_id INTEGER NOT NULL,
            change_timestamp TEXT DEFAULT CURRENT_TIMESTAMP,
            field_name TEXT NOT NULL,
            old_value TEXT,
            new_value TEXT,
            action TEXT NOT NULL
        );
    """)


# ============ USER MANAGEMENT ============

def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against hash"""
    return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))


def create_user(email: str, password: str, full_name: Optional[str] = None,
                company_name: Optional[str] = None, default_categories: Optional[List[str]] = None) -> int:
    """Create a new user and seed their category list"""
    password_hash = hash_password(password)
    with get_db_connection() as conn:
        cursor = conn.execute(
            "INSERT INTO users (email, password_hash, full_name, company_name) VALUES (?, ?, ?, ?)",
            (email.strip().lower(), password_hash, full_name, company_name)
        )
        user_id = cursor.lastrowid
        for name in default_categories or []:
            conn.execute(
                "INSERT OR IGNORE INTO categories (user_id, name) VALUES (?, ?)",
                (user_id, name)
            )
        return user_id


def authenticate_user(email: str, password: str) -> Optional[Dict]:
    """Authenticate user and return user data if valid"""
    if not email or not password:
        return None
    with get_db_connection() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE email = ? AND is_active = 1",
            (email.strip().lower(),)
        ).fetchone()

        if row and verify_password(password, row['password_hash']):
            return dict(row)
        return None


def get_user(user_id: int) -> Optional[Dict]:
    """Get user by ID"""
    with get_db_connection() as conn:
        row = conn.execute(
            "SELECT user_id, email, full_name, company_name, is_active, created_at FROM users WHERE user_id = ?",
            (user_id,)
        ).fetchone()
        return dict(row) if row else None


# ============ ASSET MANAGEMENT ============

def add_data_change_audit_log(asset_id, user_id, field_name, old_value, new_value, action='UPDATE', conn=None):
    """Logs a specific data field change for an asset."""
    sql = """
        INSERT INTO asset_data_audit (asset_id, changed_by_user_id, field_name, old_value, new_value, action)
        VALUES (?, ?, ?, ?, ?, ?)
    """
    params = (asset_id, user_id, field_name,
              None if old_value is None else str(old_value),
              None if new_value is None else str(new_value),
              action)
    if conn is not None:
        conn.execute(sql, params)
        return
    with get_db_connection() as own_conn:
        own_conn.execute(sql, params)


def get_asset_audit_log(asset_id: int, user_id: int) -> List[Dict]:
    """Field-level change history for one of the user's assets"""
    with get_db_connection() as conn:
        rows = conn.execute(
            """
            SELECT a.* FROM asset_data_audit a
            WHERE a.asset_id = ? AND a.changed_by_user_id = ?
            ORDER BY a.audit_id
            """,
            (asset_id, user_id)
        ).fetchall()
        return [dict(row) for row in rows]


def _serialize(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def create_asset(user_id: int, asset_data: Dict) -> int:
    """Insert an asset owned by user_id and audit every field"""
    values = {f: _serialize(asset_data.get(f)) for f in ASSET_FIELDS}
    field_names = ', '.join(ASSET_FIELDS)
    placeholders = ', '.join(['?' for _ in ASSET_FIELDS])

    with get_db_connection() as conn:
        cursor = conn.execute(
            f"INSERT INTO assets (user_id, {field_names}) VALUES (?, {placeholders})",
            [user_id] + [values[f] for f in ASSET_FIELDS]
        )
        asset_id = cursor.lastrowid
        for key, value in values.items():
            if value is not None:
                add_data_change_audit_log(asset_id, user_id, key, None, value, action='CREATE', conn=conn)
        return asset_id


def update_asset(asset_id: int, user_id: int, asset_data: Dict) -> Optional[Dict]:
    """
    Update the given fields of one of the user's assets.

    Returns the previous row, or None if the asset does not exist or
    belongs to another user.
    """
    old_asset = get_asset(asset_id, user_id)
    if not old_asset:
        return None

    changes = {f: _serialize(asset_data[f]) for f in ASSET_FIELDS if f in asset_data}
    if not changes:
        return old_asset

    set_clause = ', '.join([f"{f} = ?" for f in changes]) + ", updated_at = CURRENT_TIMESTAMP"
    with get_db_connection() as conn:
        conn.execute(
            f"UPDATE assets SET {set_clause} WHERE asset_id = ? AND user_id = ?",
            list(changes.values()) + [asset_id, user_id]
        )
        for key, new_value in changes.items():
            old_value = old_asset.get(key)
            if str(old_value) != str(new_value):
                add_data_change_audit_log(asset_id, user_id, key, old_value, new_value, action='UPDATE', conn=conn)
    return old_asset


def get_asset(asset_id: int, user_id: int) -> Optional[Dict]:
    """Get an asset by ID, only if owned by user"""
    with get_db_connection() as conn:
        row = conn.execute(
            "SELECT * FROM assets WHERE asset_id = ? AND user_id = ?",
            (asset_id, user_id)
        ).fetchone()
        return dict(row) if row else None


def list_assets(user_id: int) -> List[Dict]:
    """Get all assets for a specific user, newest first"""
    with get_db_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM assets WHERE user_id = ? ORDER BY created_at DESC, asset_id DESC",
            (user_id,)
        ).fetchall()
        return [dict(row) for row in rows]


def delete_asset(asset_id: int, user_id: int) -> bool:
    """Delete an asset (only if owned by user)"""
    with get_db_connection() as conn:
        cursor = conn.execute(
            "DELETE FROM assets WHERE asset_id = ? AND user_id = ?",
            (asset_id, user_id)
        )
        deleted = cursor.rowcount > 0
        if deleted:
            add_data_change_audit_log(asset_id, user_id, 'asset_id', asset_id, None, action='DELETE', conn=conn)
        return deleted


# ============ CATEGORIES ============

def list_categories(user_id: int, include_inactive: bool = False) -> List[Dict]:
    with get_db_connection() as conn:
        sql = "SELECT * FROM categories WHERE user_id = ?"
        if not include_inactive:
            sql += " AND is_active = 1"
        rows = conn.execute(sql + " ORDER BY name", (user_id,)).fetchall()
        return [dict(row) for row in rows]


def create_category(user_id: int, name: str) -> int:
    """Create a category; raises sqlite3.IntegrityError on duplicate names"""
    with get_db_connection() as conn:
        cursor = conn.execute(
            "INSERT INTO categories (user_id, name) VALUES (?, ?)",
            (user_id, name)
        )
        return cursor.lastrowid


def rename_category(category_id: int, user_id: int, name: str) -> bool:
    """Rename a category and carry the new name onto the user's assets"""
    with get_db_connection() as conn:
        row = conn.execute(
            "SELECT name FROM categories WHERE category_id = ? AND user_id = ?",
            (category_id, user_id)
        ).fetchone()
        if not row:
            return False
        conn.execute(
            "UPDATE categories SET name = ? WHERE category_id = ? AND user_id = ?",
            (name, category_id, user_id)
        )
        conn.execute(
            "UPDATE assets SET category = ?, updated_at = CURRENT_TIMESTAMP WHERE user_id = ? AND category = ?",
            (name, user_id, row['name'])
        )
        return True


def delete_category(category_id: int, user_id: int) -> bool:
    with get_db_connection() as conn:
        cursor = conn.execute(
            "DELETE FROM categories WHERE category_id = ? AND user_id = ?",
            (category_id, user_id)
        )
        return cursor.rowcount > 0


# ============ MAINTENANCE ============

def list_maintenance_tasks(user_id: int) -> List[Dict]:
    """All maintenance tasks for a user, soonest due first"""
    with get_db_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM maintenance_tasks WHERE user_id = ? ORDER BY due_date, task_id",
            (user_id,)
        ).fetchall()
        return [dict(row) for row in rows]


def get_upcoming_maintenance(user_id: int, limit: int = 10, as_of: Optional[date] = None) -> List[Dict]:
    """Open tasks ordered by due date, each with days_until_due (negative when overdue)"""
    as_of = as_of or date.today()
    with get_db_connection() as conn:
        rows = conn.execute(
            """
            SELECT * FROM maintenance_tasks
            WHERE user_id = ? AND completed = 0
            ORDER BY due_date, task_id
            LIMIT ?
            """,
            (user_id, limit)
        ).fetchall()

    tasks = []
    for row in rows:
        task = dict(row)
        try:
            due = datetime.strptime(str(task['due_date'])[:10], '%Y-%m-%d').date()
            task['days_until_due'] = (due - as_of).days
        except (ValueError, TypeError):
            task['days_until_due'] = None
        tasks.append(task)
    return tasks


def get_maintenance_task(task_id: int, user_id: int) -> Optional[Dict]:
    with get_db_connection() as conn:
        row = conn.execute(
            "SELECT * FROM maintenance_tasks WHERE task_id = ? AND user_id = ?",
            (task_id, user_id)
        ).fetchone()
        return dict(row) if row else None


def create_maintenance_task(user_id: int, task_data: Dict) -> int:
    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            INSERT INTO maintenance_tasks (user_id, asset_id, asset_name, task, due_date, priority)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, task_data.get('asset_id'), task_data.get('asset_name'), task_data['task'],
             _serialize(task_data['due_date']), task_data.get('priority', 'medium'))
        )
        return cursor.lastrowid


def update_maintenance_task(task_id: int, user_id: int, task_data: Dict) -> bool:
    changes = {f: _serialize(task_data[f]) for f in MAINTENANCE_FIELDS if f in task_data}
    if 'completed' in changes:
        changes['completed'] = 1 if changes['completed'] else 0
    if not changes:
        return get_maintenance_task(task_id, user_id) is not None

    set_clause = ', '.join([f"{f} = ?" for f in changes])
    if 'completed' in changes:
        set_clause += ", completed_at = CASE WHEN ? = 1 THEN CURRENT_TIMESTAMP ELSE NULL END"
    params = list(changes.values())
    if 'completed' in changes:
        params.append(changes['completed'])

    with get_db_connection() as conn:
        cursor = conn.execute(
            f"UPDATE maintenance_tasks SET {set_clause} WHERE task_id = ? AND user_id = ?",
            params + [task_id, user_id]
        )
        return cursor.rowcount > 0


def complete_maintenance_task(task_id: int, user_id: int) -> bool:
    return update_maintenance_task(task_id, user_id, {'completed': True})


def delete_maintenance_task(task_id: int, user_id: int) -> bool:
    with get_db_connection() as conn:
        cursor = conn.execute(
            "DELETE FROM maintenance_tasks WHERE task_id = ? AND user_id = ?",
            (task_id, user_id)
        )
        return cursor.rowcount > 0
