"""
REST API endpoints for the booking frontend and the admin calendar.

Handlers parse input into DTOs, call one service operation and serialize
the result. Errors are raised and turned into responses by the error
middleware.
"""

import json
import logging
from datetime import datetime, timezone

from aiohttp import web

from core.dto import (
    AvailabilityQueryDTO,
    BarberAppointmentsQueryDTO,
    ChangeDurationDTO,
    CreateAppointmentDTO,
    CreateTimeOffDTO,
    DateRangeDTO,
    RescheduleAppointmentDTO,
    ServicePriceDTO,
    SlotsQueryDTO,
    UpdateAppointmentStatusDTO,
    UpdateNotesDTO,
    WorkingHoursDTO,
)
from core.exceptions import ServiceNotFoundError, ValidationError
from database.base import read_session, write_transaction
from database.fallback import with_fallback
from database.models import Service
from database.repositories import AppointmentRepository, BarberRepository, ServiceRepository
from services.use_cases import appointment_to_dict
from studio.keys import (
    AVAILABILITY_KEY,
    BOOKING_KEY,
    CLOCK_KEY,
    LIFECYCLE_KEY,
    SESSION_FACTORY_KEY,
    SETTINGS_KEY,
)
from studio.utils.time_utils import month_bounds, to_iso_utc

logger = logging.getLogger(__name__)


def setup_routes(app: web.Application):
    """Setup all API routes."""
    # Health check
    app.router.add_get('/health', health_check)

    # Customer API
    app.router.add_get('/api/services', get_services)
    app.router.add_get('/api/services/{slug}', get_service)
    app.router.add_get('/api/barbers', get_barbers)
    app.router.add_get('/api/availability', get_availability)
    app.router.add_get('/api/slots', get_slots)
    app.router.add_post('/api/book', book_appointment)

    # Admin API
    app.router.add_post('/api/admin/appointments/{appointment_id}/status', update_appointment_status)
    app.router.add_post('/api/admin/appointments/{appointment_id}/reschedule', reschedule_appointment)
    app.router.add_post('/api/admin/appointments/{appointment_id}/duration', change_appointment_duration)
    app.router.add_put('/api/admin/appointments/{appointment_id}/notes', update_appointment_notes)
    app.router.add_get('/api/admin/barbers/{barber_id}/appointments', get_barber_appointments)
    app.router.add_get('/api/admin/barbers/{barber_id}/appointments/count', count_barber_appointments)
    app.router.add_post('/api/admin/barbers/{barber_id}/time-off', create_time_off)
    app.router.add_post('/api/admin/barbers/{barber_id}/cancel', cancel_barber_appointments)
    app.router.add_put('/api/admin/barbers/{barber_id}/working-hours', set_working_hours)
    app.router.add_post('/api/admin/services/{service_id}/deactivate', deactivate_service)
    app.router.add_put('/api/admin/services/{service_id}/price', set_service_price)


async def read_json(request: web.Request) -> dict:
    """Request body as a JSON object."""
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise ValidationError("body", "must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationError("body", "must be a JSON object")
    return body


def path_id(request: web.Request, name: str) -> int:
    """Positive integer path parameter."""
    try:
        value = int(request.match_info[name])
    except ValueError:
        raise ValidationError(name, "must be an integer")
    if value <= 0:
        raise ValidationError(name, "must be positive")
    return value


async def health_check(request: web.Request):
    """Health check endpoint."""
    return web.json_response({
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat()
    })


# ========== Customer API ==========

def service_to_dict(service: Service, locale: str, default_locale: str) -> dict:
    translation = service.translation(locale, fallback=default_locale)
    return {
        "id": service.id,
        "slug": service.slug,
        "name": translation.name if translation else service.slug,
        "description": translation.description if translation else None,
        "durationMinutes": service.duration_minutes,
        "price": str(service.base_price),
    }


async def get_services(request: web.Request):
    """Active services with the name in the requested locale."""
    settings = request.app[SETTINGS_KEY]
    locale = request.query.get("locale") or settings.default_locale

    async def query():
        async with request.app[SESSION_FACTORY_KEY]() as session:
            services = await ServiceRepository(session).get_catalog(active_only=True)
            return [service_to_dict(s, locale, settings.default_locale) for s in services]

    return web.json_response({"services": await with_fallback(query, [], label="get_services")})


async def get_service(request: web.Request):
    """One active service by slug. 404 for unknown or inactive slugs."""
    settings = request.app[SETTINGS_KEY]
    locale = request.query.get("locale") or settings.default_locale
    slug = request.match_info["slug"]

    async with read_session(request.app[SESSION_FACTORY_KEY]) as session:
        service = await ServiceRepository(session).get_by_slug(slug)
        if not service or not service.is_active:
            raise ServiceNotFoundError(slug)
        return web.json_response({"service": service_to_dict(service, locale, settings.default_locale)})


async def get_barbers(request: web.Request):
    """Active barbers."""
    async def query():
        async with request.app[SESSION_FACTORY_KEY]() as session:
            barbers = await BarberRepository(session).get_active()
            return [
                {
                    "id": b.id,
                    "displayName": b.display_name,
                    "languages": list(b.languages or []),
                    "bio": b.bio,
                }
                for b in barbers
            ]

    return web.json_response({"barbers": await with_fallback(query, [], label="get_barbers")})


async def get_availability(request: web.Request):
    """Calendar status for every day of the month containing ``date``."""
    params = AvailabilityQueryDTO.model_validate(dict(request.query))
    first_day, last_day = month_bounds(params.date)

    availability = await request.app[AVAILABILITY_KEY].check_availability_for_date_range(
        params.service_id,
        first_day,
        last_day,
        params.duration,
        now=request.app[CLOCK_KEY](),
    )
    return web.json_response({
        "availability": {day: status.value for day, status in availability.items()}
    })


async def get_slots(request: web.Request):
    """Slots of one barber, or of every barber offering a service."""
    params = SlotsQueryDTO.model_validate(dict(request.query))
    service = request.app[AVAILABILITY_KEY]
    now = request.app[CLOCK_KEY]()

    if params.barber_id is not None:
        slots = await service.generate_slots(
            params.barber_id, params.date, params.duration, params.interval, now=now
        )
        return web.json_response({"slots": [s.to_dict() for s in slots]})

    by_barber = await service.generate_slots_for_service(
        params.service_id, params.date, params.duration, params.interval, now=now
    )
    return web.json_response({"slotsByBarber": [b.to_dict() for b in by_barber]})


async def book_appointment(request: web.Request):
    """Create an appointment. 409 when the window was taken meanwhile."""
    data = CreateAppointmentDTO.model_validate(await read_json(request))
    appointment = await request.app[BOOKING_KEY].create_appointment(data)
    return web.json_response({"appointment": appointment_to_dict(appointment)}, status=201)


# ========== Admin API ==========

async def update_appointment_status(request: web.Request):
    appointment_id = path_id(request, "appointment_id")
    data = UpdateAppointmentStatusDTO.model_validate(await read_json(request))

    appointment = await request.app[LIFECYCLE_KEY].update_status(appointment_id, data.status)
    return web.json_response({"appointment": appointment_to_dict(appointment)})


async def create_time_off(request: web.Request):
    """Add time off, optionally canceling appointments inside the period."""
    barber_id = path_id(request, "barber_id")
    data = CreateTimeOffDTO.model_validate(await read_json(request))
    lifecycle = request.app[LIFECYCLE_KEY]

    time_off = await lifecycle.create_time_off(barber_id, data.start, data.end, data.reason)

    canceled = None
    if data.cancel_appointments:
        canceled = await lifecycle.cancel_by_barber_and_date_range(barber_id, data.start, data.end)

    return web.json_response({
        "timeOff": {
            "id": time_off.id,
            "barberId": time_off.barber_id,
            "start": to_iso_utc(time_off.start_datetime),
            "end": to_iso_utc(time_off.end_datetime),
            "reason": time_off.reason,
        },
        "canceled": canceled.to_dict() if canceled else None,
    }, status=201)


async def cancel_barber_appointments(request: web.Request):
    barber_id = path_id(request, "barber_id")
    data = DateRangeDTO.model_validate(await read_json(request))

    result = await request.app[LIFECYCLE_KEY].cancel_by_barber_and_date_range(barber_id, data.start, data.end)
    return web.json_response(result.to_dict())


async def set_working_hours(request: web.Request):
    barber_id = path_id(request, "barber_id")
    data = WorkingHoursDTO.model_validate(await read_json(request))

    hours = await request.app[LIFECYCLE_KEY].set_working_hours(barber_id, data.weekday, data.start, data.end)
    return web.json_response({
        "barberId": hours.barber_id,
        "weekday": hours.weekday,
        "start": hours.start_time,
        "end": hours.end_time,
    })


async def reschedule_appointment(request: web.Request):
    """Move an appointment. 409 on overlap, 400 outside working hours."""
    appointment_id = path_id(request, "appointment_id")
    data = RescheduleAppointmentDTO.model_validate(await read_json(request))

    appointment = await request.app[LIFECYCLE_KEY].reschedule_appointment(
        appointment_id, data.start_time, data.end_time, barber_id=data.barber_id
    )
    return web.json_response({"appointment": appointment_to_dict(appointment)})


async def change_appointment_duration(request: web.Request):
    appointment_id = path_id(request, "appointment_id")
    data = ChangeDurationDTO.model_validate(await read_json(request))

    appointment = await request.app[LIFECYCLE_KEY].change_duration(appointment_id, data.duration_minutes)
    return web.json_response({"appointment": appointment_to_dict(appointment)})


async def update_appointment_notes(request: web.Request):
    appointment_id = path_id(request, "appointment_id")
    data = UpdateNotesDTO.model_validate(await read_json(request))

    appointment = await request.app[LIFECYCLE_KEY].update_notes(appointment_id, data.notes)
    return web.json_response({"appointment": appointment_to_dict(appointment)})


async def get_barber_appointments(request: web.Request):
    """Appointments of a barber for the admin calendar, optionally by status."""
    barber_id = path_id(request, "barber_id")
    params = BarberAppointmentsQueryDTO.model_validate(dict(request.query))

    async def query():
        async with request.app[SESSION_FACTORY_KEY]() as session:
            appointments = await AppointmentRepository(session).get_by_barber(barber_id, params.status)
            return [appointment_to_dict(a) for a in appointments]

    return web.json_response({
        "appointments": await with_fallback(query, [], label="get_barber_appointments")
    })


async def count_barber_appointments(request: web.Request):
    """How many appointments a cancellation over ``start``..``end`` would hit."""
    barber_id = path_id(request, "barber_id")
    data = DateRangeDTO.model_validate(dict(request.query))

    count = await request.app[LIFECYCLE_KEY].count_by_barber_and_date_range(barber_id, data.start, data.end)
    return web.json_response({"count": count})


async def deactivate_service(request: web.Request):
    """Hide a service from the catalog. Booked appointments keep it."""
    service_id = path_id(request, "service_id")

    async with write_transaction(request.app[SESSION_FACTORY_KEY]) as session:
        service = await ServiceRepository(session).deactivate(service_id)
        if not service:
            raise ServiceNotFoundError(service_id)

    logger.info(f"Service {service_id} deactivated", extra={"service_id": service_id})
    return web.json_response({"id": service.id, "slug": service.slug, "active": service.is_active})


async def set_service_price(request: web.Request):
    """Change the catalog price for future bookings."""
    service_id = path_id(request, "service_id")
    data = ServicePriceDTO.model_validate(await read_json(request))

    async with write_transaction(request.app[SESSION_FACTORY_KEY]) as session:
        service = await ServiceRepository(session).set_base_price(service_id, data.base_price)
        if not service:
            raise ServiceNotFoundError(service_id)

    logger.info(
        f"Service {service_id} price set to {data.base_price}",
        extra={"service_id": service_id},
    )
    return web.json_response({"id": service.id, "slug": service.slug, "price": str(service.base_price)})
