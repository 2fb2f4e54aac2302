"""
Modelos SQLAlchemy para o banco de dados
"""

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class StoredRecord(Base):
    """Registro chave/valor persistido no dispositivo"""
    __tablename__ = "stored_records"

    key = Column(String(128), primary_key=True, comment="Chave do registro")
    value = Column(Text, nullable=False, comment="Conteúdo serializado em JSON")

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), comment="Última atualização")

    def __repr__(self):
        return f"<StoredRecord(key='{self.key}', size={len(self.value or '')})>"
