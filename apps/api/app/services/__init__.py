"""
Pitchside Business Logic Services
=================================

Async service functions grouped by concern. Every function takes the
`AsyncSession` as its first argument; functions that change state commit
their own unit of work.

- entities: slug/UUID resolution and search
- seasons: seasons, competition seasons and temporal context
- affiliations: the player/team and team/venue ledger
- standings: aggregation of standings and player stats
- subscriptions: tiers, entitlements and daily usage
- auth: passwords, sessions and tokens
- follows, notifications, predictions: user-facing glue
"""
