"""
Chat identifiers (JIDs).

A user chat is addressed as ``<digits>@s.whatsapp.net`` and a group as
``<id>@g.us``. Phone numbers are only stripped of non-digits; no country
code or length validation is applied.
"""

import re

USER_SUFFIX = "@s.whatsapp.net"
GROUP_SUFFIX = "@g.us"

_NON_DIGITS = re.compile(r"[^0-9]")


def digits_only(phone: str) -> str:
    return _NON_DIGITS.sub("", phone)


def phone_to_jid(phone: str) -> str:
    """Build a user JID from a phone number in any human format."""
    return digits_only(phone) + USER_SUFFIX


def is_group_jid(jid: str) -> bool:
    return jid.endswith(GROUP_SUFFIX)
