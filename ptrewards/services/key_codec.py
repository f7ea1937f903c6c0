"""
Key Codec for PT Rewards
Maps user emails to Realtime Database path segments and back
"""

from ptrewards.utils.error_handler import ValidationError

# Characters the database does not accept inside a key, plus the path separator
FORBIDDEN_KEY_CHARS = frozenset('./#$[]')

def identifier_to_key(identifier):
    """
    Trim, lowercase and replace '.' with ',' (the database forbids '.' in keys).
    An empty identifier maps to an empty key; callers must reject it.
    """
    return str(identifier or '').strip().lower().replace('.', ',')

def key_to_identifier(key):
    """
    Reverse of identifier_to_key. Lossy for identifiers that already held a ','.
    """
    return str(key or '').replace(',', '.')

def check_child_key(segment, field):
    """
    Reject a course, sticker or reward id that cannot be used as a single path segment
    """
    bad = sorted(FORBIDDEN_KEY_CHARS.intersection(segment))
    if bad:
        raise ValidationError(f"{field} must not contain {' '.join(bad)}", field=field)
    return segment

def user_path(key, *parts):
    """Build 'users/<key>/<part>/...' for a mapped key"""
    return '/'.join(['users', key] + [str(p) for p in parts])
