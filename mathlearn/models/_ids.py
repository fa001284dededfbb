"""
Primary key helpers shared by all models
"""
import uuid


def new_id() -> str:
    """Default primary key: UUID4 as text (seed data may supply readable ids)"""
    return str(uuid.uuid4())
