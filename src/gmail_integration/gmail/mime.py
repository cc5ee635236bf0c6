"""RFC 2822 multipart message assembly.

Builds the raw message text handed to Gmail's ``messages.send`` media upload.
The layout is fixed: headers, a text/plain part, a text/html part, then one
base64 part per attachment.

See https://tools.ietf.org/html/rfc2822 and RFC 2045/2047 for the encodings.
"""

from __future__ import annotations

import base64
import re
import secrets

from gmail_integration.models import Attachment, MailParams

CRLF = "\r\n"

# RFC 2045 caps encoded lines at 76 characters.
_BASE64_LINE_LENGTH = 76

# RFC 2047 caps an encoded-word at 75 characters; "=?utf-8?B?" + "?=" leaves
# 63 for the payload, i.e. 45 raw bytes per word.
_ENCODED_WORD_BYTES = 45

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _encoded_word(chunk: bytes) -> str:
    return f"=?utf-8?B?{base64.b64encode(chunk).decode('ascii')}?="


def encode_subject(subject: str) -> str:
    """Encode a subject as RFC 2047 base64 encoded-words.

    Subjects longer than one encoded-word are split on character boundaries
    and folded onto continuation lines.

    Args:
        subject: Plain-text subject, any characters.

    Returns:
        One or more ``=?utf-8?B?...?=`` words safe to put on the wire.
    """
    chunks: list[bytes] = []
    current = b""
    for char in subject:
        encoded = char.encode("utf-8")
        if current and len(current) + len(encoded) > _ENCODED_WORD_BYTES:
            chunks.append(current)
            current = b""
        current += encoded
    chunks.append(current)

    return (CRLF + " ").join(_encoded_word(chunk) for chunk in chunks)


def new_boundary() -> str:
    """Return a fresh multipart boundary token."""
    return f"__gmail_integration_{secrets.token_hex(16)}__"


def _normalize_newlines(text: str) -> str:
    return _LINE_BREAK.sub(CRLF, text)


def _quote_param(value: str) -> str:
    # Line breaks cannot appear in a header; quotes and backslashes are escaped
    # as RFC 2822 quoted-pairs.
    value = _LINE_BREAK.sub("", value)
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _encode_payload(data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return CRLF.join(
        encoded[i : i + _BASE64_LINE_LENGTH] for i in range(0, len(encoded), _BASE64_LINE_LENGTH)
    )


def _attachment_part(attachment: Attachment, boundary: str) -> list[str]:
    body = _encode_payload(attachment.data)
    filename = _quote_param(attachment.filename)
    return [
        f"--{boundary}",
        f'Content-Type: {attachment.mime_type}; name="{filename}"',
        f"Content-Length: {len(body.encode('ascii'))}",
        f'Content-Disposition: attachment; filename="{filename}"',
        "Content-Transfer-Encoding: base64",
        "",
        body,
    ]


def create_mime_message(params: MailParams, *, boundary: str | None = None) -> str:
    """Create a MIME message that complies with RFC 2822.

    Nothing is validated: empty or malformed fields produce a malformed
    message rather than an error.

    Args:
        params: Sender, recipients, subject, bodies and attachments.
        boundary: Multipart boundary to use. A random one is generated when
            omitted; pass a fixed value for reproducible output.

    Returns:
        The complete message text, CRLF line endings.
    """
    boundary = boundary or new_boundary()

    lines = [
        "MIME-Version: 1.0",
        f"To: {params.to_emails}",
        f"From: <{params.from_email}>",
        f"Subject: {encode_subject(params.subject)}",
    ]

    if params.cc:
        lines.append(f"Cc: {params.cc}")

    if params.bcc:
        lines.append(f"Bcc: {params.bcc}")

    lines.extend(
        [
            f'Content-Type: multipart/mixed; boundary="{boundary}"',
            "",
            f"--{boundary}",
            "Content-Type: text/plain; charset=UTF-8",
            "Content-Transfer-Encoding: 8bit",
            "",
            _normalize_newlines(params.text_plain),
            f"--{boundary}",
            "Content-Type: text/html; charset=UTF-8",
            "Content-Transfer-Encoding: 8bit",
            "",
            _normalize_newlines(params.text_html),
        ]
    )

    for attachment in params.attachments or []:
        lines.extend(_attachment_part(attachment, boundary))

    lines.append(f"--{boundary}--")

    return CRLF.join(lines)
