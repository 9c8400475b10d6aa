from zoneinfo import ZoneInfo

from roombill.settings import settings

LOCAL_TZ = ZoneInfo(settings.timezone)

# Rentals in these states occupy their room instance and are billed.
BILLABLE_RENTAL_STATUSES = ("active", "pending_renewal")

RENT_ITEM_TYPE = "rent"
RENT_ITEM_NAME = "Room rent"

MONTHS_EN = {
    "01": "January",
    "02": "February",
    "03": "March",
    "04": "April",
    "05": "May",
    "06": "June",
    "07": "July",
    "08": "August",
    "09": "September",
    "10": "October",
    "11": "November",
    "12": "December",
}


def format_period(ref: str) -> str:
    if not ref or "-" not in ref:
        return ref or ""
    year, month = ref.split("-")
    return f"{MONTHS_EN.get(month, month)} {year}"
