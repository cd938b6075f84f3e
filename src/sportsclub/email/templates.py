"""
Email templates for SportsClub.

All templates use inline CSS for maximum email client compatibility.
Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

BG_LIGHT = "#F4F4F4"
BG_CARD = "#FFFFFF"
ACCENT = "#1E88E5"
TEXT_PRIMARY = "#1F2328"
TEXT_SECONDARY = "#656D76"


def _base_layout(content: str, app_name: str = "SportsClub") -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_LIGHT}; font-family: Arial, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">
        <tr>
            <td align="center" style="padding: 32px 16px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%; background-color: {BG_CARD}; border-radius: 8px;">
                    <tr>
                        <td style="padding: 32px;">
                            {content}
                        </td>
                    </tr>
                </table>
                <p style="color: {TEXT_SECONDARY}; font-size: 12px; margin-top: 16px;">
                    If you didn't create an account, you can safely ignore this email.
                </p>
            </td>
        </tr>
    </table>
</body>
</html>"""


def verification_code_email(code: str, ttl_minutes: int = 10) -> tuple[str, str, str]:
    """
    Email carrying the 6-digit verification code.

    Args:
        code: The one-time code, rendered verbatim.
        ttl_minutes: Minutes until the code expires.
    """
    subject = "Verify Your Email Address"
    content = f"""\
<h2 style="color: {TEXT_PRIMARY}; margin: 0 0 16px;">Welcome to SportsClub!</h2>
<p style="color: {TEXT_PRIMARY}; font-size: 15px; line-height: 1.6;">
    Thank you for signing up. Please verify your email address by entering the
    following code in the app:
</p>
<div style="background: {BG_LIGHT}; padding: 20px; text-align: center; margin: 20px 0; font-size: 24px; letter-spacing: 5px; color: {ACCENT};">
    {code}
</div>
<p style="color: {TEXT_SECONDARY}; font-size: 14px;">This code will expire in {ttl_minutes} minutes.</p>
<p style="color: {TEXT_PRIMARY}; font-size: 14px;">Best regards,<br>The SportsClub Team</p>"""
    text = (
        "Welcome to SportsClub!\n\n"
        "Please verify your email address by entering the following code in the app:\n\n"
        f"    {code}\n\n"
        f"This code will expire in {ttl_minutes} minutes.\n\n"
        "If you didn't create an account, you can safely ignore this email.\n"
    )
    return subject, _base_layout(content), text
