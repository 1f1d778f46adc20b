from .base import Base
from .models.record import StoredRecord  # Registers stored_records table
