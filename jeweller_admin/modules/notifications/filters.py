"""
Preference Filter
=================

Decides whether a user's stored category/location preferences match an
outgoing article notification.
"""


def category_matches(profile, payload):
    """Category check. A profile with preferences needs an overlap; an
    article without categories never matches a non-empty preference set."""
    if not profile.category_preferences:
        return True
    return any(category in profile.category_preferences for category in payload.categories)


def location_matches(profile, payload):
    """Location check. Only applies when the article carries locations.

    NOTE: unlike categories, an article with no locations passes even when
    the profile has location preferences. The mobile client has always
    received notifications under this rule, so it is kept as is.
    """
    if not profile.location_preferences or not payload.locations:
        return True
    return any(location in profile.location_preferences for location in payload.locations)


def is_eligible(profile, payload):
    """True if the profile should receive a notification for the payload"""
    return category_matches(profile, payload) and location_matches(profile, payload)


def filter_tokens(profiles, payload):
    """Eligible tokens in store order, each token once"""
    tokens = []
    seen = set()
    for profile in profiles:
        if profile.token in seen:
            continue
        if is_eligible(profile, payload):
            tokens.append(profile.token)
            seen.add(profile.token)
    return tokens
