"""
Django Guestmerge - guest to registered account reconciliation.

Usage:
    from guestmerge import GuestMerger, merge_guest_data

    result = merge_guest_data("user-42", email="a@b.com", guest_session_id=gid)
    result.merged_counts.cart_items

    # Custom stores
    merger = GuestMerger(customers, carts, wishlists, orders)
    merger.reconcile("user-42", guest_session_id=gid)
"""


def __getattr__(name):
    if name == "GuestMerger":
        from guestmerge.services.merge import GuestMerger

        return GuestMerger
    if name == "MergeResult":
        from guestmerge.services.merge import MergeResult

        return MergeResult
    if name == "merge_guest_data":
        from guestmerge.services.merge import merge_guest_data

        return merge_guest_data
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["GuestMerger", "MergeResult", "merge_guest_data"]
__version__ = "0.1.0"
