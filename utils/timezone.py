#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Centralized timezone handling
The event runs in India, so "today" and log timestamps use IST.
"""
from datetime import datetime, timezone, timedelta

# India Standard Time (UTC+05:30)
IST_TZ = timezone(timedelta(hours=5, minutes=30))

def get_ist_now():
    """Get current datetime in IST"""
    return datetime.now(IST_TZ)

def get_ist_today():
    """Get current date in IST"""
    return get_ist_now().date()

def utc_now():
    """Naive UTC timestamp for DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def utc_to_ist(dt):
    """Convert UTC datetime to IST"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(IST_TZ)
