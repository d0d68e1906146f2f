def ranking_key(discount):
    # non-stackable (False) sorts ahead of stackable (True) on equal priority
    return (discount.priority, bool(discount.stackable))


def rank(discounts):
    """
    Orders discounts by precedence.

    Priority ascending first, then non-stackable ahead of stackable.
    sorted() is stable, so entries tied on both keys keep their input order.
    Works on any objects exposing ``priority`` and ``stackable``.
    """
    return sorted(discounts, key=ranking_key)
