"""Wall-clock access for the engine.

Routes depend on ``get_today``/``get_now`` so tests can pin the calendar.
"""
import datetime as dt


def utcnow() -> dt.datetime:
    return dt.datetime.utcnow()


def today() -> dt.date:
    return utcnow().date()


def get_now() -> dt.datetime:
    return utcnow()


def get_today() -> dt.date:
    return today()
