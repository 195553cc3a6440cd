from sqlalchemy import BigInteger, Column, MetaData, String, Table, Text

# SQLAlchemy core Table definitions
metadata = MetaData()

repositories_table = Table(
    'repositories', metadata,
    Column('owner', String(255), primary_key=True),
    Column('name', String(255), primary_key=True),
)

users_table = Table(
    'users', metadata,
    Column('id', BigInteger, primary_key=True, autoincrement=False),
    Column('login', String(255), nullable=False),
)

labels_table = Table(
    'labels', metadata,
    Column('id', BigInteger, primary_key=True, autoincrement=False),
    Column('name', String(255), nullable=False, index=True),
    Column('description', Text, nullable=True),
)

# created_at holds the canonical 'YYYY-MM-DD HH:MM:SS' UTC text, which sorts chronologically.
issues_table = Table(
    'issues', metadata,
    Column('id', BigInteger, primary_key=True, autoincrement=False),
    Column('number', BigInteger, nullable=False),
    Column('title', Text, nullable=False),
    Column('state', String(50), nullable=False),
    Column('repository_full_name', String(511), nullable=False, index=True),
    Column('author_id', BigInteger, nullable=False),
    Column('created_at', String(19), nullable=False, index=True),
)

issue_labels_table = Table(
    'issue_labels', metadata,
    Column('issue_id', BigInteger, primary_key=True, autoincrement=False),
    Column('label_id', BigInteger, primary_key=True, autoincrement=False),
)
