"""Settings shared by every environment (attendance rules, geofence)."""

import os

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Office reference point and geofence radius (meters)
OFFICE_LATITUDE = float(os.getenv("OFFICE_LATITUDE", "0"))
OFFICE_LONGITUDE = float(os.getenv("OFFICE_LONGITUDE", "0"))
GEOFENCE_RADIUS = float(os.getenv("GEOFENCE_RADIUS", "100"))

# Working day; tolerances in minutes
WORK_START = os.getenv("WORK_START", "08:00")
WORK_END = os.getenv("WORK_END", "17:00")
LATE_TOLERANCE_MINUTES = int(os.getenv("LATE_TOLERANCE_MINUTES", "15"))
EARLY_LEAVE_TOLERANCE_MINUTES = int(os.getenv("EARLY_LEAVE_TOLERANCE_MINUTES", "15"))

CORRECTION_MONTHLY_LIMIT = int(os.getenv("CORRECTION_MONTHLY_LIMIT", "2"))
CORRECTION_MAX_AGE_DAYS = int(os.getenv("CORRECTION_MAX_AGE_DAYS", "30"))
