# tradepost/models/conversation.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    ForeignKey,
    TIMESTAMP,
    CheckConstraint,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from tradepost.database import Base, utcnow


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    participant_one_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_two_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Weak reference: the thread survives removal of the listing
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    conversation_key = Column(String(100), nullable=False)
    last_message_id = Column(
        Integer,
        ForeignKey("messages.id", ondelete="SET NULL", use_alter=True, name="fk_conversations_last_message_id"),
        nullable=True,
    )
    last_message_at = Column(TIMESTAMP, default=utcnow, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("conversation_key", name="uq_conversations_conversation_key"),
        CheckConstraint("participant_one_id <> participant_two_id", name="check_distinct_participants"),
    )

    participant_one = relationship("User", foreign_keys=[participant_one_id])
    participant_two = relationship("User", foreign_keys=[participant_two_id])
    product = relationship("Product")
    last_message = relationship("Message", foreign_keys=[last_message_id], post_update=True)
    messages = relationship(
        "Message",
        back_populates="conversation",
        foreign_keys="Message.conversation_id",
        order_by="Message.created_at",
    )

    @property
    def participant_ids(self):
        return (self.participant_one_id, self.participant_two_id)

    def has_participant(self, user_id: int) -> bool:
        return user_id in self.participant_ids

    def counterpart_of(self, user_id: int) -> int:
        return self.participant_two_id if self.participant_one_id == user_id else self.participant_one_id


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(TIMESTAMP, nullable=True)
    # Set in Python so ordering keeps microsecond resolution on every backend
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
        Index("ix_messages_receiver_unread", "receiver_id", "is_read"),
    )

    conversation = relationship("Conversation", back_populates="messages", foreign_keys=[conversation_id])
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
