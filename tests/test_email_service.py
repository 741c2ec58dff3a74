"""Commission released email rendering and SMTP notifier behaviour."""
from decimal import Decimal

import pytest

from funnelhub.schemas.commission_release import CommissionReleasedEmailData
from funnelhub.services.commission_release import EmailCommissionNotifier, NotificationFailed
from funnelhub.services.email_service import (
    EmailService,
    format_money,
    render_commission_released_html,
    render_commission_released_text,
)


def configured_service() -> EmailService:
    return EmailService(
        smtp_host="smtp.example.com",
        smtp_user="mailer@example.com",
        smtp_password="secret",
        frontend_url="https://app.example.com/dashboard",
    )


def email_data(**overrides) -> CommissionReleasedEmailData:
    values = {
        "affiliate_owner_email": "uma@example.com",
        "affiliate_owner_name": "Uma Lee",
        "commission_amount": Decimal("1250.5"),
        "new_available_balance": Decimal("1300"),
        "number_of_commissions": 2,
        "payment_ids": [3, 4],
    }
    values.update(overrides)
    return CommissionReleasedEmailData(**values)


class TestTemplates:

    def test_format_money(self):
        assert format_money(Decimal("1250.5")) == "$1,250.50"
        assert format_money(Decimal("0")) == "$0.00"

    def test_text_body_single_commission(self):
        text = render_commission_released_text(
            affiliate_name="Uma Lee",
            commission_amount=Decimal("50"),
            new_available_balance=Decimal("75"),
            number_of_commissions=1,
        )

        assert "Hi Uma Lee," in text
        assert "Your held commission has been successfully released after the 30-day hold period." in text
        assert "Released Commission: $50.00" in text
        assert "Your New Available Balance: $75.00" in text
        assert "تم إصدار العمولة!" in text

    def test_text_body_multiple_commissions(self):
        text = render_commission_released_text(
            affiliate_name="Uma Lee",
            commission_amount=Decimal("70"),
            new_available_balance=Decimal("70"),
            number_of_commissions=3,
            hold_days=14,
        )

        assert "Your 3 held commissions have been successfully released after the 14-day hold period." in text

    def test_html_body_links_dashboard_when_configured(self):
        html = render_commission_released_html(
            affiliate_name="Uma Lee",
            commission_amount=Decimal("50"),
            new_available_balance=Decimal("75"),
            number_of_commissions=1,
            dashboard_url="https://app.example.com/dashboard",
        )

        assert 'href="https://app.example.com/dashboard"' in html
        assert "$50.00" in html
        assert 'dir="rtl"' in html

    def test_html_body_without_dashboard(self):
        html = render_commission_released_html(
            affiliate_name="Uma Lee",
            commission_amount=Decimal("50"),
            new_available_balance=Decimal("75"),
            number_of_commissions=1,
        )

        assert "Open Dashboard" not in html


class TestEmailService:

    def test_unconfigured_service_does_not_send(self):
        service = EmailService()

        assert service.is_configured is False
        assert service.send_email("uma@example.com", "Subject", "<p>hi</p>") is False

    def test_commission_email_subject_and_bodies(self, monkeypatch):
        service = configured_service()
        captured = {}

        def fake_send(to_email, subject, html_content, text_content=None):
            captured.update(to=to_email, subject=subject, html=html_content, text=text_content)
            return True

        monkeypatch.setattr(service, "send_email", fake_send)

        assert service.send_commission_released_email(
            to_email="uma@example.com",
            affiliate_name="Uma Lee",
            commission_amount=Decimal("1250.5"),
            new_available_balance=Decimal("1300"),
            number_of_commissions=2,
        ) is True

        assert captured["to"] == "uma@example.com"
        assert captured["subject"] == "Commission Released - $1,250.50 Now Available | تم إصدار العمولة"
        assert "Your 2 held commissions have" in captured["text"]
        assert "$1,300.00" in captured["html"]


class TestEmailCommissionNotifier:

    def test_skips_when_smtp_not_configured(self, run):
        notifier = EmailCommissionNotifier(EmailService())

        assert run(notifier.send_commission_released(email_data())) is None

    def test_passes_message_to_email_service(self, monkeypatch, run):
        service = configured_service()
        calls = []

        def fake_send(**kwargs):
            calls.append(kwargs)
            return True

        monkeypatch.setattr(service, "send_commission_released_email", fake_send)

        run(EmailCommissionNotifier(service, hold_days=45).send_commission_released(email_data()))

        assert calls == [{
            "to_email": "uma@example.com",
            "affiliate_name": "Uma Lee",
            "commission_amount": Decimal("1250.5"),
            "new_available_balance": Decimal("1300"),
            "number_of_commissions": 2,
            "hold_days": 45,
        }]

    def test_raises_when_delivery_fails(self, monkeypatch, run):
        service = configured_service()
        monkeypatch.setattr(service, "send_commission_released_email", lambda **kwargs: False)

        with pytest.raises(NotificationFailed) as exc_info:
            run(EmailCommissionNotifier(service).send_commission_released(email_data()))

        assert exc_info.value.code == "NOTIFICATION_FAILED"
        assert "uma@example.com" in exc_info.value.message
