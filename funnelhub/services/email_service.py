import smtplib
from datetime import datetime, timezone
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)


def format_money(amount: Decimal) -> str:
    return f"${Decimal(amount):,.2f}"


class EmailService:
    """Email service for sending transactional emails via SMTP."""

    def __init__(
        self,
        smtp_host: str = "smtp.gmail.com",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "Funnelhub",
        frontend_url: str = "",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.frontend_url = frontend_url

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email over SMTP with STARTTLS.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML body of the email
            text_content: Plain text body (optional fallback)

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.is_configured:
            logger.warning("Email not configured. SMTP credentials missing.")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain', 'utf-8'))
            msg.attach(MIMEText(html_content, 'html', 'utf-8'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP Authentication failed. Check email credentials.")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error: {e}")
            return False
        except TimeoutError:
            logger.error("SMTP connection timed out")
            return False
        except OSError as e:
            logger.error(f"Network error sending email: {e}")
            return False

    # ==================== AFFILIATE NOTIFICATIONS ====================

    def send_commission_released_email(
        self,
        to_email: str,
        affiliate_name: str,
        commission_amount: Decimal,
        new_available_balance: Decimal,
        number_of_commissions: int,
        hold_days: int = 30,
    ) -> bool:
        """
        Tell an affiliate that held commissions are now spendable.

        One email covers every commission released for the affiliate in a
        run; `commission_amount` is their sum.
        """
        formatted_amount = format_money(commission_amount)
        subject = f"Commission Released - {formatted_amount} Now Available | تم إصدار العمولة"

        html_content = render_commission_released_html(
            affiliate_name=affiliate_name,
            commission_amount=commission_amount,
            new_available_balance=new_available_balance,
            number_of_commissions=number_of_commissions,
            hold_days=hold_days,
            dashboard_url=self.frontend_url,
        )
        text_content = render_commission_released_text(
            affiliate_name=affiliate_name,
            commission_amount=commission_amount,
            new_available_balance=new_available_balance,
            number_of_commissions=number_of_commissions,
            hold_days=hold_days,
        )

        return self.send_email(to_email, subject, html_content, text_content)


def _commission_phrase(number_of_commissions: int) -> str:
    if number_of_commissions == 1:
        return "Your held commission has"
    return f"Your {number_of_commissions} held commissions have"


def render_commission_released_html(
    affiliate_name: str,
    commission_amount: Decimal,
    new_available_balance: Decimal,
    number_of_commissions: int,
    hold_days: int = 30,
    dashboard_url: str = "",
) -> str:
    """HTML body of the commission released email (English + Arabic)."""
    formatted_amount = format_money(commission_amount)
    formatted_balance = format_money(new_available_balance)
    commission_text = _commission_phrase(number_of_commissions)
    year = datetime.now(timezone.utc).year

    dashboard_link = ""
    if dashboard_url:
        dashboard_link = f'<p style="text-align: center;"><a href="{dashboard_url}" class="button">Open Dashboard</a></p>'

    return f"""
    <!DOCTYPE html>
    <html dir="ltr" lang="en">
    <head>
        <meta charset="UTF-8">
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #000; }}
            .container {{ max-width: 600px; margin: 0 auto; border: 2px solid #000; }}
            .header {{ padding: 30px; text-align: center; border-bottom: 2px solid #000; }}
            .content {{ padding: 40px 30px; }}
            .amount-box {{ margin: 20px 0; padding: 20px; border: 2px solid #000; background: #f5f5f5; text-align: center; }}
            .amount {{ font-size: 32px; font-weight: bold; }}
            .button {{ display: inline-block; padding: 12px 30px; background: #000; color: #fff; text-decoration: none; }}
            .footer {{ padding: 30px; text-align: center; border-top: 2px solid #000; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>Funnelhub</h1>
            </div>
            <div class="content">
                <h2>Commission Released!</h2>
                <p>Hi {affiliate_name},</p>
                <p>Great news! {commission_text} been successfully released after the {hold_days}-day hold period.</p>
                <div class="amount-box">
                    <div>Released Commission</div>
                    <div class="amount">{formatted_amount}</div>
                </div>
                <p><strong>Your New Available Balance:</strong> {formatted_balance}</p>
                <p>You can now request a withdrawal of these funds at any time through your dashboard.</p>
                {dashboard_link}
                <p>Keep up the great work!</p>
            </div>
            <div class="content" dir="rtl">
                <h2>تم إصدار العمولة!</h2>
                <p>مرحباً {affiliate_name}،</p>
                <p>أخبار رائعة! تم إصدار عمولتك بنجاح بعد فترة التجميد لمدة {hold_days} يومًا.</p>
                <div class="amount-box">
                    <div>العمولة المصدرة</div>
                    <div class="amount">{formatted_amount}</div>
                </div>
                <p><strong>رصيدك المتاح الجديد:</strong> {formatted_balance}</p>
                <p>يمكنك الآن طلب سحب هذه الأموال في أي وقت من خلال لوحة التحكم الخاصة بك.</p>
            </div>
            <div class="footer">
                <p>Funnelhub &copy; {year}</p>
            </div>
        </div>
    </body>
    </html>
    """


def render_commission_released_text(
    affiliate_name: str,
    commission_amount: Decimal,
    new_available_balance: Decimal,
    number_of_commissions: int,
    hold_days: int = 30,
) -> str:
    """Plain text body of the commission released email."""
    formatted_amount = format_money(commission_amount)
    formatted_balance = format_money(new_available_balance)
    commission_text = _commission_phrase(number_of_commissions)
    year = datetime.now(timezone.utc).year

    return f"""
FUNNELHUB

Commission Released!

Hi {affiliate_name},

Great news! {commission_text} been successfully released after the {hold_days}-day hold period.

Released Commission: {formatted_amount}

Your New Available Balance: {formatted_balance}

You can now request a withdrawal of these funds at any time through your dashboard.

Keep up the great work!

---

تم إصدار العمولة!

مرحباً {affiliate_name}،

أخبار رائعة! تم إصدار عمولتك بنجاح بعد فترة التجميد لمدة {hold_days} يومًا.

العمولة المصدرة: {formatted_amount}

رصيدك المتاح الجديد: {formatted_balance}

---

Funnelhub © {year}
""".strip()


def get_email_service() -> EmailService:
    """Get configured email service instance."""
    from funnelhub.config import settings

    return EmailService(
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
        frontend_url=settings.FRONTEND_URL,
    )
