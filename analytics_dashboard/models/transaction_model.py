"""
Transaction Model - payment flow events (table basic_paying_flow)

Read-only from the dashboard's point of view. Status and error category are
derived on read by services.transaction_classifier and never written back.
"""
from typing import Optional
from datetime import datetime
from sqlalchemy import Column, Text
from sqlmodel import SQLModel, Field


class Transaction(SQLModel, table=True):
    __tablename__ = "basic_paying_flow"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Identifiers
    transaction_id: Optional[str] = Field(default=None, index=True)
    event_index: Optional[int] = None

    # Event
    event_type: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, index=True)
    session_start_time: Optional[datetime] = None

    # Merchant
    merchant_id: Optional[str] = Field(default=None, index=True)
    merchant_name: Optional[str] = None
    merchant_category: Optional[str] = None
    merchant_requested_locale: Optional[str] = None
    merchant_requested_market: Optional[str] = None

    # Payment
    total_amount: Optional[float] = None
    payment_amount: Optional[str] = None
    currency: Optional[str] = None
    pis_payment_reference: Optional[str] = None

    # User
    user_id: Optional[str] = None
    user_location: Optional[str] = None

    # Session & device
    browser: Optional[str] = None
    device_type: Optional[str] = None
    language: Optional[str] = None
    is_guest_mode: Optional[bool] = None
    is_returning_user: Optional[bool] = None
    is_express: Optional[bool] = None
    is_phone_required: Optional[bool] = None
    guest_present: Optional[bool] = None
    token_present: Optional[bool] = None
    token_version: Optional[str] = None

    # Failure information (failure_message / abort_reason are legacy column names)
    event_failure_message: Optional[str] = Field(default=None, sa_column=Column(Text))
    failure_message: Optional[str] = Field(default=None, sa_column=Column(Text))
    checkout_session_abort_reason: Optional[str] = None
    abort_reason: Optional[str] = None
    checkout_session_status_change_reason: Optional[str] = None

    # Chatbot
    chatbot_available: Optional[str] = None
    chatbot_query: Optional[str] = Field(default=None, sa_column=Column(Text))
    chatbot_response: Optional[str] = Field(default=None, sa_column=Column(Text))
    help_requested: Optional[str] = None
