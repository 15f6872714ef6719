# File: catalog_sync/downloader/page_selectors.py
# Ordered fallbacks per element; the first visible match wins, so keep the
# most specific selectors first. Add a string here when the portal markup
# changes instead of touching the login flow.
from __future__ import annotations

from types import MappingProxyType

COOKIE_ACCEPT = (
    "button#onetrust-accept-btn-handler",
    "button:has-text('Accetta tutti')",
    "button:has-text('ACCETTA')",
    "button:has-text('Accetta i cookie')",
    "button:has-text('Accept all')",
    ".cookie-consent button.accept",
    "[class*='cookie'] button[class*='accept']",
    "button[aria-label*='accetta']",
    ".gdpr-cookie-notice button",
)

EMAIL = (
    "input[name='login[username]']",
    "input[name='email']",
    "input[type='email']",
    "input#email",
    "input#username",
    "input[placeholder*='email' i]",
    "input[placeholder*='mail' i]",
    "input[autocomplete='email']",
    "input[autocomplete='username']",
    ".field.email input",
    ".login-form input[type='text']",
)

PASSWORD = (
    "input[name='login[password]']",
    "input[name='password']",
    "input[type='password']",
    "input#pass",
    "input#password",
    "input[placeholder*='password' i]",
    "input[autocomplete='current-password']",
    ".field.password input",
    ".login-form input[type='password']",
)

SUBMIT = (
    "button[type='submit']",
    "button:has-text('Accedi')",
    "button:has-text('Login')",
    "button:has-text('Sign in')",
    "button:has-text('Entra')",
    "button.action.login",
    ".actions-toolbar button.primary",
    "#send2",
    "button.btn-login",
    "input[type='submit']",
    ".login-form button",
    ".form-login button",
)

# Only rendered for an authenticated customer.
ACCOUNT_INDICATORS = (
    ".customer-welcome",
    ".welcome-msg",
    ".logged-in",
    ".customer-name",
    ".header-account",
    ".account-menu",
    "a[href*='/customer/account']",
    "a[href*='/logout']",
    "a:has-text('Il mio account')",
    "a:has-text('My Account')",
    "[class*='customer'][class*='logged']",
    ".authorization-link a[href*='logout']",
)

SELECTOR_ROLES = MappingProxyType(
    {
        "cookie_accept": COOKIE_ACCEPT,
        "email": EMAIL,
        "password": PASSWORD,
        "submit": SUBMIT,
        "account_indicators": ACCOUNT_INDICATORS,
    }
)
