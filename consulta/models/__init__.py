# Import the declarative base
from consulta.db.base import Base

# Import all models for Alembic/SQLAlchemy discovery
# Note: These imports are required so that they register themselves on Base.metadata
from consulta.models.order import Order

# This allows Alembic's env.py to simply do: "from consulta.models import Base"
# and have access to the metadata for all tables.
