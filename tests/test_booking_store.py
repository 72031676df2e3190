import pytest
from datetime import date
from rental_desk import db
from rental_desk.errors import StateError
from rental_desk.models import PeriodType, WorkspaceStatus
from rental_desk.services.availability_service import AvailabilityQuery, AvailabilityService
from rental_desk.services.rental_service import RentalService


def monthly_payload(init_data, period_type, start_date, end_date=None):
    return {
        'client_id': init_data['customer'].id,
        'rental_type': 'ROOM_MONTHLY',
        'period_type': period_type,
        'room_id': init_data['open_space'].id,
        'start_date': start_date,
        'end_date': end_date,
    }

def day_free(room, day):
    query = AvailabilityQuery(period_type=PeriodType.DAILY, start_date=day, room_id=room.id)
    return AvailabilityService.is_available(query).available

def desk_query(*desks):
    return AvailabilityQuery(period_type=PeriodType.DAILY, start_date=date(2025, 3, 3),
                             workspace_ids=[d.id for d in desks])


def test_sliding_month_stored_with_short_end_date_still_blocks(app, init_data):
    # Stored end date covers one day, the sliding month runs to 02-14
    RentalService.create(monthly_payload(init_data, 'SLIDING_MONTH', '2025-01-15', '2025-01-15'))
    room = init_data['open_space']
    assert not day_free(room, date(2025, 2, 14))
    assert day_free(room, date(2025, 2, 15))
    assert day_free(room, date(2025, 1, 14))

def test_sliding_month_without_end_date(app, init_data):
    RentalService.create(monthly_payload(init_data, 'SLIDING_MONTH', '2025-01-15'))
    room = init_data['open_space']
    assert not day_free(room, date(2025, 2, 14))
    assert day_free(room, date(2025, 2, 15))

def test_calendar_month_without_end_date_blocks_rest_of_month(app, init_data):
    RentalService.create(monthly_payload(init_data, 'CALENDAR_MONTH', '2025-04-10'))
    room = init_data['open_space']
    assert day_free(room, date(2025, 4, 9))
    assert not day_free(room, date(2025, 4, 25))
    assert not day_free(room, date(2025, 4, 30))
    assert day_free(room, date(2025, 5, 1))

def test_desks_of_deactivated_room_are_not_found(app, init_data):
    desk = init_data['desks'][0]
    init_data['open_space'].is_active = False
    db.session.commit()

    result = AvailabilityService.is_available(desk_query(desk))
    assert not result.resource_found
    assert not result.available
    assert result.missing_ids == [desk.id]

def test_maintenance_desk_is_skipped_by_first_fit(app, init_data):
    first, second, _ = init_data['desks']
    first.status = WorkspaceStatus.MAINTENANCE.value
    db.session.commit()

    result = AvailabilityService.is_available(desk_query(first, second))
    assert result.selected_workspace_id == second.id
    assert result.unavailable_ids == [first.id]

    application = RentalService.create({
        'client_id': init_data['customer'].id,
        'rental_type': 'WORKSPACE_DAILY',
        'period_type': 'DAILY',
        'workspace_ids': [first.id, second.id],
        'start_date': '2025-03-03',
    })
    assert [w.id for w in application.workspaces] == [second.id]

def test_only_maintenance_desks_cannot_be_booked(app, init_data):
    desk = init_data['desks'][0]
    desk.status = WorkspaceStatus.MAINTENANCE.value
    db.session.commit()

    with pytest.raises(StateError, match="None of the requested workspaces can be booked"):
        RentalService.create({
            'client_id': init_data['customer'].id,
            'rental_type': 'WORKSPACE_DAILY',
            'period_type': 'DAILY',
            'workspace_ids': [desk.id],
            'start_date': '2025-03-03',
            'ignore_conflicts': True,
        })
