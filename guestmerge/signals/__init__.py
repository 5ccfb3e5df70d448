"""
Guestmerge signals: public event API.

Emitted signals:
- customer_created: Emitted by GuestMerger when it creates the registered
  customer for a user (sender=GuestMerger, customer=CustomerRecord)
- guest_merged: Emitted by GuestMerger after a successful merge
  (sender=GuestMerger, auth_user_id=str, guest_session_id=str|None,
  result=MergeResult)
"""

from django.dispatch import Signal

customer_created = Signal()
guest_merged = Signal()
