"""
Purpose: Driver-facing text for a ride.
What it does:
- generate_sms(): numbered route + customer details + pickup time (+ notes)
- generate_share_link(): hand the text to WhatsApp / Telegram / the SMS app
- generate_navigation_url(): Google Maps directions from the driver through every stop
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Sequence, Union
from urllib.parse import quote

from .models import PICKUP_IMMEDIATELY, RideLog, RideRequest, parse_pickup_time

Translate = Callable[..., str]

COUNTRY_PREFIX = "420"


class MessagingApp(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"


def format_pickup_time(pickup_time: str, t: Translate) -> str:
    if pickup_time == PICKUP_IMMEDIATELY:
        return t("sms.pickupASAP")
    parsed = parse_pickup_time(pickup_time)
    if parsed is None:
        return pickup_time
    return parsed.strftime("%H:%M")


def generate_sms(ride: Union[RideRequest, RideLog], t: Translate) -> str:
    stops_text = ", ".join(f"{index}. {stop}" for index, stop in enumerate(ride.stops, start=1))

    sms = (
        f"{t('sms.route')}: {stops_text}. "
        f"{t('sms.name')}: {ride.customer_name}, "
        f"{t('sms.phone')}: {ride.customer_phone}, "
        f"{t('sms.passengers')}: {ride.passengers}, "
        f"{t('sms.pickupTime')}: {format_pickup_time(ride.pickup_time, t)}"
    )
    if ride.notes:
        sms += f", {t('sms.note')}: {ride.notes}"
    return sms


def generate_share_link(app: MessagingApp, phone: str, text: str) -> str:
    encoded_text = quote(text, safe="")
    clean_phone = "".join(phone.split())

    if app == MessagingApp.WHATSAPP:
        # wa.me wants the international number without "+" or "00"
        international = clean_phone.lstrip("+")
        if international.startswith("00"):
            international = international[2:]
        if not international.startswith(COUNTRY_PREFIX):
            international = f"{COUNTRY_PREFIX}{international}"
        return f"https://wa.me/{international}?text={encoded_text}"
    if app == MessagingApp.TELEGRAM:
        # Telegram cannot address a phone number, it opens the share sheet
        return f"tg://share/url?text={encoded_text}"
    return f"sms:{clean_phone}?body={encoded_text}"


def generate_navigation_url(driver_location: str, stops: Sequence[str]) -> str:
    if not driver_location or not stops:
        return "https://maps.google.com"

    points = [driver_location, *stops]
    return "https://www.google.com/maps/dir/" + "/".join(quote(point, safe="") for point in points)
