"""HTML bodies for account emails, rendered with Liquid."""

from liquid import Environment

_env = Environment()

_LAYOUT = _env.from_string("""\
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #2c3e50;">{{ heading }}</h2>
        <p>Hi {{ name | escape }},</p>
        <p>{{ intro }}</p>
        <div style="text-align: center; margin: 30px 0;">
            <a href="{{ link | escape }}"
               style="background-color: #3498db; color: #fff; padding: 12px 30px;
                      text-decoration: none; border-radius: 5px; font-size: 16px;">
                {{ label }}
            </a>
        </div>
        <p style="color: #7f8c8d; font-size: 13px;">
            If the button doesn't work, copy and paste this link into your browser:<br>
            <a href="{{ link | escape }}">{{ link | escape }}</a>
        </p>
        {% if note %}<p>{{ note }}</p>{% endif %}
        <p style="color: #7f8c8d; font-size: 13px;">The GlobeTrotter team</p>
    </div>
</body>
</html>
""")


def email_verification(name: str, link: str) -> tuple[str, str]:
    body = _LAYOUT.render(
        heading="Welcome aboard!",
        name=name,
        intro="Thanks for signing up. Please confirm your email address to start planning trips.",
        link=link,
        label="Verify Email",
        note="This link expires in 24 hours.",
    )
    return "Verify your GlobeTrotter email", body


def welcome(name: str, link: str) -> tuple[str, str]:
    body = _LAYOUT.render(
        heading="You're all set",
        name=name,
        intro="Your email is verified and your account is ready.",
        link=link,
        label="Plan a Trip",
    )
    return "Welcome to GlobeTrotter!", body


def password_reset(name: str, link: str) -> tuple[str, str]:
    body = _LAYOUT.render(
        heading="Password reset",
        name=name,
        intro="We received a request to reset your password.",
        link=link,
        label="Reset Password",
        note="This link expires in 1 hour. If you didn't ask for a reset, you can ignore this email.",
    )
    return "Reset your GlobeTrotter password", body
