"""Minimal server-rendered HTML pages.

All interpolated values go through html.escape.
"""

from html import escape

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta http-equiv="content-type" content="text/html; charset=utf-8">
    <title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""


def _render(title: str, body: str) -> str:
    return _PAGE.format(title=escape(title), body=body)


def _messages(messages: list[str]) -> str:
    return "".join(f"<p><i>{escape(message)}</i></p>\n" for message in messages)


def home_page() -> str:
    """Landing page with the subscription form."""
    return _render(
        "Home",
        """<p>Welcome to our newsletter!</p>
<form action="/subscriptions" method="post">
    <label>Name
        <input type="text" placeholder="Enter your name" name="name">
    </label>
    <label>Email
        <input type="email" placeholder="Enter your email" name="email">
    </label>
    <button type="submit">Subscribe</button>
</form>
<p><a href="/login">Publisher login</a></p>""",
    )


def login_page(messages: list[str]) -> str:
    """Login form, preceded by any flash or error messages."""
    return _render(
        "Login",
        _messages(messages)
        + """<form action="/login" method="post">
    <label>Username
        <input type="text" placeholder="Enter Username" name="username">
    </label>
    <label>Password
        <input type="password" placeholder="Enter Password" name="password">
    </label>
    <button type="submit">Login</button>
</form>""",
    )


def dashboard_page(username: str) -> str:
    """Admin dashboard greeting the logged-in publisher."""
    return _render(
        "Admin dashboard",
        f"""<p>Welcome {escape(username)}!</p>
<p>Available actions:</p>
<ol>
    <li>
        <form name="logoutForm" action="/admin/logout" method="post">
            <input type="submit" value="Logout">
        </form>
    </li>
</ol>""",
    )
