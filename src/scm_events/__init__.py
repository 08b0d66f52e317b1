"""Head-event classification for GitHub webhook notifications.

This package turns untrusted ``create``, ``delete`` and ``push`` webhook
deliveries into change heads for incremental repository re-scans:
- Payload decoding and identity validation
- Branch/tag ref classification and repository matching
- Source-relative prefilters and per-event head resolution
- Debounced delivery to registered sources and navigators
"""
