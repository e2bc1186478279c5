import pytest
from pydantic import ValidationError

from resort.core.prompt_loader import get_lead_extraction_prompt
from resort.server.models.requests import ChatRequest, PaymentOrderRequest, StaffInviteRequest


def test_chat_request_accepts_widget_keys_and_keeps_roles_as_sent():
    req = ChatRequest.model_validate(
        {
            "messages": [
                {"role": "bot", "content": "Welcome"},
                {"role": "user", "content": "Hi", "id": 3},
            ],
            "sessionId": "s-1",
            "userId": "u-1",
        }
    )

    assert req.session_id == "s-1"
    assert req.user_id == "u-1"
    assert req.transcript() == [
        {"role": "bot", "content": "Welcome"},
        {"role": "user", "content": "Hi"},
    ]


def test_chat_request_needs_a_message():
    with pytest.raises(ValidationError):
        ChatRequest.model_validate({"messages": []})


def test_payment_order_request_validation():
    assert PaymentOrderRequest(amount=10).currency == "INR"
    with pytest.raises(ValidationError):
        PaymentOrderRequest(amount=0)
    with pytest.raises(ValidationError):
        PaymentOrderRequest(amount=10, currency="RUPEE")


def test_staff_request_role_vocabulary():
    assert StaffInviteRequest.model_validate({"email": "a@b.co", "fullName": "A"}).role == "staff"
    with pytest.raises(ValidationError):
        StaffInviteRequest.model_validate({"email": "a@b.co", "fullName": "A", "role": "owner"})


def test_prompt_templates():
    system, prompt = get_lead_extraction_prompt("Call me on 98765")
    assert system == "You are a JSON extractor."
    assert prompt.startswith('Analyze: "Call me on 98765". Return valid JSON only: { "name": null,')
    assert '"type": "booking"|"general"|"safari"|"wedding" }' in prompt
