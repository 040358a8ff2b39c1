"""Describes the lunch voting domain. Centres around the `Menu`.

A restaurant publishes at most one menu a day. Users vote once a day for the
restaurant they want to eat at.

Where are the invariants?

- One menu per restaurant per day. The database holds the unique constraint,
  the services only translate the rejection.
- A menu owns its dishes. Deleting the menu deletes them.
- One vote per user per day, changeable until the deadline.
"""
