# coupons/exceptions.py


class CouponPersistenceError(Exception):
    """
    The redemption transaction failed at the database level.
    Nothing was written, so the caller may retry.
    """
