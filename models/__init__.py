from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from models.user import User
from models.content import ContentItem
from models.audit import AuditLog
