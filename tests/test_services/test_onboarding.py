"""Tests for the onboarding state machine."""

import asyncio

import pytest

from life_calendar.domain.errors import DeliveryError
from life_calendar.domain.session_state import InMemorySessionStore, OnboardingState
from life_calendar.services import messages
from life_calendar.services.onboarding import OnboardingStateMachine

USER_ID = 42


@pytest.fixture
def sessions():
    return InMemorySessionStore()


@pytest.fixture
def machine(catalog, registry, dispatcher, sessions):
    return OnboardingStateMachine(
        catalog=catalog,
        registry=registry,
        dispatcher=dispatcher,
        sessions=sessions,
    )


async def _register(machine, user_id=USER_ID, dob="2000-05-15", region="Россия"):
    await machine.handle_text(user_id, "/start")
    await machine.handle_text(user_id, dob)
    return await machine.handle_text(user_id, region)


class TestRestart:
    @pytest.mark.asyncio
    async def test_start_from_idle(self, machine, sessions, dispatcher):
        state = await machine.handle_text(USER_ID, "/start")

        assert state == OnboardingState.AWAITING_DATE_OF_BIRTH
        assert sessions.get(USER_ID).pending_date_of_birth is None
        assert dispatcher.texts_for(USER_ID) == [messages.ONBOARDING_PROMPT]

    @pytest.mark.asyncio
    async def test_restart_from_awaiting_region_clears_pending_date(
        self, machine, sessions
    ):
        await machine.handle_text(USER_ID, "/start")
        await machine.handle_text(USER_ID, "2000-05-15")
        assert sessions.get(USER_ID).pending_date_of_birth == "2000-05-15"

        state = await machine.handle_text(USER_ID, "/start")

        assert state == OnboardingState.AWAITING_DATE_OF_BIRTH
        assert sessions.get(USER_ID).pending_date_of_birth is None

    @pytest.mark.asyncio
    async def test_restart_from_awaiting_date(self, machine):
        await machine.handle_text(USER_ID, "/start")
        state = await machine.handle_text(USER_ID, "/start")
        assert state == OnboardingState.AWAITING_DATE_OF_BIRTH

    @pytest.mark.asyncio
    async def test_restart_method(self, machine, sessions):
        state = await machine.restart(USER_ID)
        assert state == OnboardingState.AWAITING_DATE_OF_BIRTH
        assert sessions.get(USER_ID).state == OnboardingState.AWAITING_DATE_OF_BIRTH

    @pytest.mark.asyncio
    async def test_command_with_bot_username(self, machine):
        state = await machine.handle_text(USER_ID, "/start@LifeCalendarBot")
        assert state == OnboardingState.AWAITING_DATE_OF_BIRTH

    @pytest.mark.asyncio
    async def test_custom_restart_command(self, catalog, registry, dispatcher):
        machine = OnboardingStateMachine(
            catalog, registry, dispatcher, restart_command="/register"
        )
        assert await machine.handle_text(USER_ID, "/start") == OnboardingState.IDLE
        assert (
            await machine.handle_text(USER_ID, "/register")
            == OnboardingState.AWAITING_DATE_OF_BIRTH
        )


class TestIdle:
    @pytest.mark.asyncio
    async def test_text_while_idle_is_ignored(self, machine, dispatcher, registry):
        state = await machine.handle_text(USER_ID, "2000-05-15")

        assert state == OnboardingState.IDLE
        assert dispatcher.sent == []
        assert registry.upsert_calls == []

    @pytest.mark.asyncio
    async def test_idle_chatter_keeps_no_session(self, machine, sessions):
        for _ in range(3):
            await machine.handle_text(USER_ID, "привет")

        assert USER_ID not in sessions
        assert len(sessions) == 0


class TestSessionRetention:
    @pytest.mark.asyncio
    async def test_session_kept_while_onboarding(self, machine, sessions):
        await machine.handle_text(USER_ID, "/start")
        assert USER_ID in sessions

        await machine.handle_text(USER_ID, "2000-05-15")
        assert USER_ID in sessions

    @pytest.mark.asyncio
    async def test_session_dropped_after_registration(self, machine, sessions):
        await _register(machine)
        assert len(sessions) == 0

    @pytest.mark.asyncio
    async def test_failed_store_keeps_session(self, machine, registry, sessions):
        registry.fail_upsert = True
        await _register(machine)

        assert USER_ID in sessions
        assert sessions.get(USER_ID).state == OnboardingState.AWAITING_REGION


class TestDateOfBirthStep:
    @pytest.mark.asyncio
    async def test_valid_date_moves_to_region(self, machine, sessions, dispatcher):
        await machine.handle_text(USER_ID, "/start")
        state = await machine.handle_text(USER_ID, "2000-05-15")

        assert state == OnboardingState.AWAITING_REGION
        assert sessions.get(USER_ID).pending_date_of_birth == "2000-05-15"
        assert dispatcher.texts_for(USER_ID)[-1] == messages.REGION_PROMPT

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_is_tolerated(self, machine, sessions):
        await machine.handle_text(USER_ID, "/start")
        await machine.handle_text(USER_ID, "  2000-05-15\n")
        assert sessions.get(USER_ID).pending_date_of_birth == "2000-05-15"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["2023-02-29", "15.05.2000", "2000-5-15", "завтра"])
    async def test_invalid_date_keeps_state(self, machine, sessions, dispatcher, text):
        await machine.handle_text(USER_ID, "/start")
        state = await machine.handle_text(USER_ID, text)

        assert state == OnboardingState.AWAITING_DATE_OF_BIRTH
        assert sessions.get(USER_ID).pending_date_of_birth is None
        assert dispatcher.texts_for(USER_ID)[-1] == messages.DATE_FORMAT_ERROR

    @pytest.mark.asyncio
    async def test_leap_day_accepted(self, machine):
        await machine.handle_text(USER_ID, "/start")
        state = await machine.handle_text(USER_ID, "2024-02-29")
        assert state == OnboardingState.AWAITING_REGION


class TestRegionStep:
    @pytest.mark.asyncio
    async def test_valid_region_registers_user(self, machine, registry, sessions):
        state = await _register(machine)

        assert state == OnboardingState.IDLE
        assert registry.upsert_calls == [(USER_ID, "2000-05-15", "Россия")]
        assert sessions.get(USER_ID).pending_date_of_birth is None

    @pytest.mark.asyncio
    async def test_confirmation_sent_after_registration(self, machine, dispatcher):
        await _register(machine)
        assert dispatcher.texts_for(USER_ID)[-1] == (
            messages.format_registration_confirmation("2000-05-15", "Россия")
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text, canonical",
        [("россия", "Россия"), ("РОССИЯ", "Россия"), ("сша", "США"), (" Япония ", "Япония")],
    )
    async def test_region_is_normalized(self, machine, registry, text, canonical):
        await _register(machine, region=text)
        assert registry.get(USER_ID).region == canonical

    @pytest.mark.asyncio
    async def test_unknown_region_keeps_state(self, machine, registry, sessions, dispatcher):
        state = await _register(machine, region="Атлантида")

        assert state == OnboardingState.AWAITING_REGION
        assert sessions.get(USER_ID).pending_date_of_birth == "2000-05-15"
        assert registry.upsert_calls == []
        assert dispatcher.texts_for(USER_ID)[-1] == messages.format_unknown_region(
            ["Россия", "США", "Германия", "Япония", "Франция"]
        )

    @pytest.mark.asyncio
    async def test_retry_after_unknown_region(self, machine, registry):
        await _register(machine, region="Атлантида")
        state = await machine.handle_text(USER_ID, "Франция")

        assert state == OnboardingState.IDLE
        assert registry.upsert_calls == [(USER_ID, "2000-05-15", "Франция")]

    @pytest.mark.asyncio
    async def test_persistence_failure_does_not_advance(
        self, machine, registry, sessions, dispatcher
    ):
        registry.fail_upsert = True

        state = await _register(machine)

        assert state == OnboardingState.AWAITING_REGION
        assert sessions.get(USER_ID).pending_date_of_birth == "2000-05-15"
        assert len(registry.upsert_calls) == 1
        assert dispatcher.texts_for(USER_ID)[-1] == messages.PERSISTENCE_FAILURE

    @pytest.mark.asyncio
    async def test_retry_after_persistence_failure(self, machine, registry):
        registry.fail_upsert = True
        await _register(machine)

        registry.fail_upsert = False
        state = await machine.handle_text(USER_ID, "Россия")

        assert state == OnboardingState.IDLE
        assert registry.get(USER_ID).date_of_birth == "2000-05-15"


class TestReRegistration:
    @pytest.mark.asyncio
    async def test_second_onboarding_overwrites_record(self, machine, registry):
        await _register(machine, dob="2000-05-15", region="Россия")
        await _register(machine, dob="1985-01-31", region="Германия")

        record = registry.get(USER_ID)
        assert record.date_of_birth == "1985-01-31"
        assert record.region == "Германия"
        assert len(registry.upsert_calls) == 2

    @pytest.mark.asyncio
    async def test_text_after_registration_is_ignored(self, machine, registry):
        await _register(machine)
        state = await machine.handle_text(USER_ID, "Германия")

        assert state == OnboardingState.IDLE
        assert len(registry.upsert_calls) == 1


class TestScenario:
    @pytest.mark.asyncio
    async def test_full_dialogue(self, machine, registry, sessions, catalog):
        assert await machine.handle_text(USER_ID, "2000-05-15") == OnboardingState.IDLE

        assert (
            await machine.handle_text(USER_ID, "/start")
            == OnboardingState.AWAITING_DATE_OF_BIRTH
        )

        assert (
            await machine.handle_text(USER_ID, "2000-05-15")
            == OnboardingState.AWAITING_REGION
        )
        assert sessions.get(USER_ID).pending_date_of_birth == "2000-05-15"

        assert await machine.handle_text(USER_ID, "Россия") == OnboardingState.IDLE
        record = registry.get(USER_ID)
        assert record.region == "Россия"
        assert catalog.lookup(record.region) == 72


class TestIsolation:
    @pytest.mark.asyncio
    async def test_users_have_independent_sessions(self, machine, sessions):
        await machine.handle_text(1, "/start")
        await machine.handle_text(2, "/start")
        await machine.handle_text(1, "2000-05-15")

        assert sessions.get(1).state == OnboardingState.AWAITING_REGION
        assert sessions.get(2).state == OnboardingState.AWAITING_DATE_OF_BIRTH

    @pytest.mark.asyncio
    async def test_concurrent_events_for_same_user_are_serialized(
        self, catalog, registry, sessions
    ):
        class SlowDispatcher:
            def __init__(self):
                self.active = 0
                self.max_active = 0

            async def send_message(self, user_id, text):
                self.active += 1
                self.max_active = max(self.max_active, self.active)
                await asyncio.sleep(0.01)
                self.active -= 1

        slow = SlowDispatcher()
        machine = OnboardingStateMachine(catalog, registry, slow, sessions=sessions)

        await asyncio.gather(
            machine.handle_text(USER_ID, "/start"),
            machine.handle_text(USER_ID, "/start"),
            machine.handle_text(USER_ID, "/start"),
        )

        assert slow.max_active == 1

    @pytest.mark.asyncio
    async def test_delivery_failure_does_not_propagate(self, catalog, registry, sessions):
        class BrokenDispatcher:
            async def send_message(self, user_id, text):
                raise DeliveryError(user_id, "Forbidden")

        machine = OnboardingStateMachine(
            catalog, registry, BrokenDispatcher(), sessions=sessions
        )

        state = await _register(machine)

        assert state == OnboardingState.IDLE
        assert registry.get(USER_ID) is not None
