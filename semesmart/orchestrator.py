"""
Family Session Orchestrator for SemeSmart

This module ties together the gateway, validation, pure updates and the
insight agent, and defines the flows a signed-in family goes through:
1. Session (sign in / register / Google → load or bootstrap → sign out)
2. Mutations (draft → validate → pure update → persist → adopt echo)
3. Insights (enough expenses? → redact → ask Gemini → report)

DESIGN DECISION: Every mutation follows one template:
- No identity or no document loaded: silently do nothing (return None)
- Validation and permission checks run before any network call
- The whole document is written; the store's echo becomes the new state
- A failed write leaves the in-memory document untouched

Mutations are serialized with an asyncio.Lock. Writes are conditional on
the revision last seen; when another device wrote in between, the document
is re-fetched and the same pure update is re-applied (bounded retries).
Results that arrive after a sign-out or re-load are discarded.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from semesmart import updates
from semesmart.agents import InsightAgent, InsightGenerationError
from semesmart.audit import AuditLogger, create_correlation_id
from semesmart.config import get_settings
from semesmart.models.audit import AuditEventBuilder
from semesmart.models.commands import (
    CardDraft,
    CreateGoal,
    CreateMember,
    EditGoal,
    EditMember,
    FamilyProfileDraft,
    GoalCommand,
    MemberCommand,
    TransactionDraft,
)
from semesmart.models.family import (
    Insight,
    Member,
    TransactionKind,
    UserData,
    new_entity_id,
)
from semesmart.queries import expense_transactions, filter_transactions
from semesmart.services.auth import AuthError, FirebaseAuthService, Identity
from semesmart.services.gateway import PersistenceGateway
from semesmart.services.storage import (
    ConflictError,
    FirestoreUserDataStorage,
    LocalSuggestionStore,
    StorageError,
    UserDataSnapshot,
)
from semesmart.validation import (
    EntryValidationError,
    EntryValidator,
    PermissionDeniedError,
    can_edit,
    can_edit_family_profile,
)

logger = structlog.get_logger(__name__)

INSIGHTS_FAILED_MESSAGE = "Não foi possível carregar as sugestões da IA. Tente novamente mais tarde."
INSIGHTS_INSUFFICIENT_MESSAGE = "Adicione mais despesas para receber dicas personalizadas da IA."
INSIGHTS_UNAVAILABLE_MESSAGE = "As sugestões da IA não estão configuradas."


class SessionLoadError(Exception):
    """Signed in, but the family document could not be loaded. The session was signed out."""
    pass


class InsightStatus(str, Enum):
    READY = "ready"
    INSUFFICIENT_DATA = "insufficient_data"
    FAILED = "failed"


@dataclass(frozen=True)
class InsightReport:
    status: InsightStatus
    insights: list[Insight] = field(default_factory=list)
    message: Optional[str] = None


def _ids(records) -> set[str]:
    return {record.id for record in records}


def _with_unique_id(record, prefix: str, records):
    """Re-mint the id if the (possibly re-fetched) collection already has it."""
    existing = _ids(records)
    if record.id not in existing:
        return record
    return record.model_copy(update={"id": new_entity_id(prefix, existing)})


class FamilySession:
    """
    One signed-in family.

    Holds the identity and the last confirmed snapshot of the family
    document. Every operation is async.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        insight_agent: Optional[InsightAgent] = None,
        validator: Optional[EntryValidator] = None,
        suggestions: Optional[LocalSuggestionStore] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings=None,
    ):
        self._gateway = gateway
        self._insight_agent = insight_agent
        self._validator = validator or EntryValidator()
        self._suggestions = suggestions
        self._audit = audit_logger or AuditLogger()
        self._settings = settings or get_settings().app

        self._identity: Optional[Identity] = None
        self._snapshot: Optional[UserDataSnapshot] = None
        # Bumped on every sign-in, re-load and sign-out; in-flight results
        # from an older generation are dropped.
        self._generation = 0
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def user_data(self) -> Optional[UserData]:
        return self._snapshot.data if self._snapshot else None

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None and self._snapshot is not None

    @property
    def acting_member(self) -> Optional[Member]:
        """The signed-in account's member (the first member by convention)."""
        data = self.user_data
        return data.owner if data else None

    @property
    def uid(self) -> Optional[str]:
        return self._identity.uid if self._identity else None

    @property
    def suggestions(self) -> Optional[LocalSuggestionStore]:
        """Device-local autocomplete lists (locations, income sources)."""
        return self._suggestions

    # ------------------------------------------------------------------
    # Session flow
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Optional[UserData]:
        """
        Sign in with email/password and load the family document.

        Raises:
            AuthError: Credentials rejected (message in .user_message)
            SessionLoadError: Signed in but the document could not be loaded
        """
        try:
            identity = await self._gateway.authenticate(email, password)
        except AuthError as e:
            await self._audit.log_sign_in_failed("password", e.code)
            raise
        return await self._start(identity)

    async def sign_in_with_google(self, google_id_token: str) -> Optional[UserData]:
        try:
            identity = await self._gateway.authenticate_with_google(google_id_token)
        except AuthError as e:
            await self._audit.log_sign_in_failed("google.com", e.code)
            raise
        return await self._start(identity)

    async def register(
        self,
        name: str,
        title: str,
        email: str,
        password: str,
    ) -> Optional[UserData]:
        """
        Create an account whose first member carries `name` and `title`.

        Raises:
            AuthError: The account could not be created
            SessionLoadError: The initial document could not be stored
        """
        self._generation += 1
        generation = self._generation
        try:
            identity, snapshot = await self._gateway.register(name, title, email, password)
        except AuthError as e:
            await self._audit.log_sign_in_failed("register", e.code)
            raise
        except StorageError as e:
            await self._audit.log_error("registration_storage", str(e))
            raise SessionLoadError("A conta foi criada, mas os dados da família não puderam ser salvos.") from e

        if generation != self._generation:
            return None
        self._identity = identity
        self._snapshot = snapshot
        await self._audit.log_session_started(identity.uid, "register")
        return snapshot.data

    async def handle_auth_state(self, identity: Optional[Identity]) -> Optional[UserData]:
        """
        React to the provider reporting a session change.

        None means signed out elsewhere: local state is cleared.
        """
        if identity is None:
            self._generation += 1
            self._identity = None
            self._snapshot = None
            return None
        return await self._start(identity)

    async def load_user_data(self) -> Optional[UserData]:
        """Re-load the document of the current identity."""
        if self._identity is None:
            return None
        return await self._start(self._identity)

    async def _start(self, identity: Identity) -> Optional[UserData]:
        self._generation += 1
        generation = self._generation

        try:
            snapshot = await self._gateway.fetch_user_data(identity)
        except StorageError as e:
            await self._audit.log(AuditEventBuilder.user_data_load_failed(identity.uid, str(e)))
            # Never leave a signed-in session without data.
            if generation == self._generation:
                self._identity = None
                self._snapshot = None
            await self._gateway.end_session(identity)
            raise SessionLoadError("Não foi possível carregar os dados da família.") from e

        if generation != self._generation:
            logger.info("stale_load_discarded", uid=identity.uid)
            return None

        self._identity = identity
        self._snapshot = snapshot
        data = snapshot.data
        await self._audit.log(AuditEventBuilder.user_data_loaded(identity.uid, {
            "members": len(data.members),
            "transactions": len(data.transactions),
            "goals": len(data.goals),
            "cards": len(data.cards),
        }))
        await self._audit.log_session_started(identity.uid, identity.provider)
        return data

    async def sign_out(self) -> None:
        identity = self._identity
        self._generation += 1
        self._identity = None
        self._snapshot = None
        await self._gateway.end_session(identity)
        await self._audit.log_session_ended(identity.uid if identity else None)

    # ------------------------------------------------------------------
    # Mutation template
    # ------------------------------------------------------------------

    async def _commit(
        self,
        action: str,
        update: Callable[[UserData], UserData],
    ) -> Optional[UserData]:
        """
        Apply a pure update, persist it, adopt the store's echo.

        Returns the new document, or None when there is no session
        (or the session changed while the write was in flight).
        """
        async with self._lock:
            identity = self._identity
            snapshot = self._snapshot
            if identity is None or snapshot is None:
                return None
            generation = self._generation
            correlation_id = create_correlation_id()

            next_data = update(snapshot.data)
            if next_data is snapshot.data:
                return snapshot.data

            try:
                written, attempts = await self._write(
                    identity, snapshot, next_data, update, action, correlation_id
                )
            except StorageError as e:
                await self._audit.log(
                    AuditEventBuilder.save_failed(identity.uid, action, str(e), correlation_id)
                )
                raise

            if generation != self._generation:
                logger.info("stale_write_discarded", uid=identity.uid, action=action)
                return None

            self._snapshot = written
            await self._audit.log(
                AuditEventBuilder.user_data_saved(identity.uid, action, correlation_id, attempts)
            )
            return written.data

    async def _write(
        self,
        identity: Identity,
        snapshot: UserDataSnapshot,
        next_data: UserData,
        update: Callable[[UserData], UserData],
        action: str,
        correlation_id: UUID,
    ) -> tuple[UserDataSnapshot, int]:
        if not self._settings.optimistic_concurrency:
            return await self._gateway.replace_user_data(identity, next_data), 1

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(ConflictError),
            stop=stop_after_attempt(self._settings.save_conflict_retries),
            reraise=True,
        ):
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    await self._audit.log_save_conflict(identity.uid, action, number - 1, correlation_id)
                    snapshot = await self._gateway.fetch_user_data(identity)
                    next_data = update(snapshot.data)
                    if next_data is snapshot.data:
                        return snapshot, number
                written = await self._gateway.replace_user_data(
                    identity, next_data, expected_revision=snapshot.revision
                )
                return written, number

    async def _log_rejection(self, error: EntryValidationError) -> None:
        await self._audit.log(AuditEventBuilder.validation_failed(
            self.uid,
            error.entity_type,
            [issue.model_dump() for issue in error.issues],
        ))

    async def _denied(self, action: str, target_id: Optional[str] = None) -> PermissionDeniedError:
        acting = self.acting_member
        acting_id = acting.id if acting else None
        await self._audit.log(AuditEventBuilder.permission_denied(self.uid, action, acting_id, target_id))
        return PermissionDeniedError(action, acting_id, target_id)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def add_transaction(self, draft: TransactionDraft) -> Optional[UserData]:
        """
        Record an income or expense (newest first).

        Raises:
            EntryValidationError: Amount not a positive number, missing description, ...
            StorageError: The write failed; nothing changed
        """
        data = self.user_data
        if data is None or self._identity is None:
            return None

        try:
            transaction = self._validator.transaction_from_draft(
                draft, new_entity_id("t", _ids(data.transactions))
            )
        except EntryValidationError as e:
            await self._log_rejection(e)
            raise

        result = await self._commit(
            "add_transaction",
            lambda current: updates.prepend_transaction(
                current, _with_unique_id(transaction, "t", current.transactions)
            ),
        )

        if result is not None and self._suggestions is not None:
            if draft.kind is TransactionKind.EXPENSE:
                self._suggestions.remember_location(transaction.location)
            else:
                self._suggestions.remember_income_source(transaction.income_source)
        return result

    async def save_goal(self, command: GoalCommand) -> Optional[UserData]:
        """
        Create a goal (saved amount starts at 0) or edit one.

        Raises:
            UnknownEntityError: Editing a goal that does not exist
            EntryValidationError: Missing name, non-positive target, ...
        """
        data = self.user_data
        if data is None or self._identity is None:
            return None

        try:
            if isinstance(command, CreateGoal):
                goal = self._validator.goal_from_fields(
                    command.fields, new_entity_id("g", _ids(data.goals)), current_amount=0.0
                )
            elif isinstance(command, EditGoal):
                if data.find_goal(command.goal_id) is None:
                    raise updates.UnknownEntityError("goal", command.goal_id)
                goal = self._validator.goal_from_fields(
                    command.fields, command.goal_id, current_amount=command.current_amount
                )
            else:
                raise TypeError(f"Unsupported goal command: {command!r}")
        except EntryValidationError as e:
            await self._log_rejection(e)
            raise

        if isinstance(command, CreateGoal):
            return await self._commit(
                "create_goal",
                lambda current: updates.append_goal(current, _with_unique_id(goal, "g", current.goals)),
            )
        return await self._commit("edit_goal", lambda current: updates.replace_goal(current, goal))

    async def save_member(self, command: MemberCommand) -> Optional[UserData]:
        """
        Add a family member or edit one.

        Raises:
            UnknownEntityError: Editing a member that does not exist
            PermissionDeniedError: The signed-in member may not edit the target
            EntryValidationError: Missing name, ...
        """
        data = self.user_data
        if data is None or self._identity is None:
            return None

        if isinstance(command, EditMember):
            target = data.find_member(command.member_id)
            if target is None:
                raise updates.UnknownEntityError("member", command.member_id)
            if not can_edit(self.acting_member, target):
                raise await self._denied("edit_member", target.id)
            member_id = command.member_id
        elif isinstance(command, CreateMember):
            member_id = new_entity_id("m", _ids(data.members))
        else:
            raise TypeError(f"Unsupported member command: {command!r}")

        try:
            member = self._validator.member_from_fields(command.fields, member_id)
        except EntryValidationError as e:
            await self._log_rejection(e)
            raise

        if isinstance(command, CreateMember):
            return await self._commit(
                "create_member",
                lambda current: updates.append_member(current, _with_unique_id(member, "m", current.members)),
            )
        return await self._commit("edit_member", lambda current: updates.replace_member(current, member))

    async def add_card(self, draft: CardDraft) -> Optional[UserData]:
        data = self.user_data
        if data is None or self._identity is None:
            return None

        try:
            card = self._validator.card_from_draft(draft, new_entity_id("c", _ids(data.cards)))
        except EntryValidationError as e:
            await self._log_rejection(e)
            raise

        return await self._commit(
            "add_card",
            lambda current: updates.append_card(current, _with_unique_id(card, "c", current.cards)),
        )

    async def edit_family_profile(self, draft: FamilyProfileDraft) -> Optional[UserData]:
        """
        Change the family name/picture. Administrators only.

        Raises:
            PermissionDeniedError: The signed-in member is not an administrator
            EntryValidationError: Empty name
        """
        data = self.user_data
        if data is None or self._identity is None:
            return None

        if not can_edit_family_profile(self.acting_member):
            raise await self._denied("edit_family_profile")

        try:
            profile = self._validator.profile_from_draft(draft, data.family_profile)
        except EntryValidationError as e:
            await self._log_rejection(e)
            raise

        return await self._commit(
            "edit_family_profile",
            lambda current: updates.set_family_profile(current, profile),
        )

    async def advance_challenge(self, challenge_id: str) -> Optional[UserData]:
        """
        available → active → completed. Completed challenges stay completed.

        Raises:
            UnknownEntityError: No challenge with this id
        """
        data = self.user_data
        if data is None or self._identity is None:
            return None
        if data.find_challenge(challenge_id) is None:
            raise updates.UnknownEntityError("challenge", challenge_id)

        return await self._commit(
            "advance_challenge",
            lambda current: updates.advance_challenge(current, challenge_id),
        )

    async def complete_onboarding(self) -> Optional[UserData]:
        """Confirm or decline the welcome tour; either way it is never shown again."""
        return await self._commit("complete_onboarding", updates.mark_onboarding_seen)

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    async def get_insights(self) -> InsightReport:
        """
        AI tips about recent spending.

        Only asked for when there are more than `insights_min_expenses`
        expenses; at most `insights_max_transactions` of the most recent
        ones are sent. Failures become a FAILED report, never an exception.
        """
        data = self.user_data
        expenses = expense_transactions(data.transactions) if data else []
        threshold = self._settings.insights_min_expenses

        if len(expenses) <= threshold:
            await self._audit.log(AuditEventBuilder.insights_skipped(self.uid, len(expenses), threshold))
            return InsightReport(
                status=InsightStatus.INSUFFICIENT_DATA,
                message=INSIGHTS_INSUFFICIENT_MESSAGE,
            )

        if self._insight_agent is None:
            return InsightReport(status=InsightStatus.FAILED, message=INSIGHTS_UNAVAILABLE_MESSAGE)

        recent = filter_transactions(expenses)[: self._settings.insights_max_transactions]
        await self._audit.log(AuditEventBuilder.insights_requested(self.uid, len(recent)))

        try:
            insights = await self._insight_agent.get_insights(recent)
        except InsightGenerationError as e:
            await self._audit.log(AuditEventBuilder.insights_failed(self.uid, str(e)))
            return InsightReport(status=InsightStatus.FAILED, message=INSIGHTS_FAILED_MESSAGE)

        return InsightReport(status=InsightStatus.READY, insights=insights)


def create_app_components(
    storage=None,
    identity_provider=None,
    use_insights: bool = True,
) -> FamilySession:
    """
    Build a signed-out session wired to the production backends.

    Args:
        storage: Family-document storage. Firestore when None.
        identity_provider: Identity provider. Firebase Auth when None.
        use_insights: Whether to configure the Gemini insight agent.
                      It is left out (with a warning) when Gemini is not configured.

    Returns:
        A FamilySession with no one signed in
    """
    settings = get_settings()
    audit_logger = AuditLogger()

    gateway = PersistenceGateway(
        identity_provider=identity_provider or FirebaseAuthService(),
        storage=storage or FirestoreUserDataStorage(),
        audit_logger=audit_logger,
    )

    insight_agent = None
    if use_insights:
        try:
            insight_agent = InsightAgent()
        except ValidationError as e:
            logger.warning("insights_not_configured", error=str(e))

    return FamilySession(
        gateway=gateway,
        insight_agent=insight_agent,
        suggestions=LocalSuggestionStore(settings.app.suggestions_file),
        audit_logger=audit_logger,
        settings=settings.app,
    )
