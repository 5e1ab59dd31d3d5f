# madarij/models/queue_message.py
from typing import Any, Dict, Optional
from pydantic import BaseModel


class DomainEvent(BaseModel):
    """Evento de dominio que llega por la cola (entrevista, admisión...)."""
    type: str
    recipient: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
