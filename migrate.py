import argparse

import psycopg2

from requestline.core.config import settings


def create_postgres_tables(delete_existing: bool):
    """创建PostgreSQL数据库表"""
    print(f"连接到PostgreSQL数据库: {settings.POSTGRES_DB} at {settings.POSTGRES_HOST}:{settings.POSTGRES_PORT} as user {settings.POSTGRES_USER}")
    conn = psycopg2.connect(
        dbname=settings.POSTGRES_DB,
        user=settings.POSTGRES_USER,
        password=settings.POSTGRES_PASSWORD,
        host=settings.POSTGRES_HOST,
        port=settings.POSTGRES_PORT
    )
    cursor = conn.cursor()

    # 删除已经创建的表
    if delete_existing:
        cursor.execute("DROP TABLE IF EXISTS song_requests CASCADE")
        cursor.execute("DROP TABLE IF EXISTS playback_guard CASCADE")
        cursor.execute("DROP TABLE IF EXISTS revoked_sessions CASCADE")
        conn.commit()

    # 创建song_requests表
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS song_requests (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            performer VARCHAR(200) NOT NULL,
            requester VARCHAR(100),
            message TEXT,
            submitted_at TIMESTAMP NOT NULL,
            status VARCHAR(16) NOT NULL CHECK (status IN ('New', 'Playing', 'Archived')) DEFAULT 'New',
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # 创建索引
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_song_requests_status ON song_requests(status)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_song_requests_submitted_at ON song_requests(submitted_at)")

    # 创建playback_guard表，状态写入前锁定这一行
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS playback_guard (
            id INTEGER PRIMARY KEY,
            version INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    cursor.execute("INSERT INTO playback_guard (id, version) VALUES (1, 0) ON CONFLICT (id) DO NOTHING")

    # 创建revoked_sessions表
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS revoked_sessions (
            id SERIAL PRIMARY KEY,
            session_id VARCHAR(64) NOT NULL UNIQUE,
            operator_id VARCHAR(128) NOT NULL,
            expires_at TIMESTAMP NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_revoked_sessions_expires_at ON revoked_sessions(expires_at)")

    # 提交更改并关闭连接
    conn.commit()
    conn.close()

    print("PostgreSQL数据库表创建成功")


if __name__ == "__main__":
    argparser = argparse.ArgumentParser(description="数据库初始化脚本")
    argparser.add_argument('--delete', action='store_true', help='删除现有的PostgreSQL表并重新创建')
    args = argparser.parse_args()
    if args.delete:
        print("删除现有的PostgreSQL表...")

    create_postgres_tables(args.delete)
    print("数据库初始化完成!")
