"""
Streamlit Frontend for SemeSmart

The screens a family uses every day: home dashboard, expense list,
reports with AI tips, goals, and the family profile.

DESIGN PRINCIPLES:
1. The UI only renders state and forwards actions to FamilySession
2. Every error is shown in plain Portuguese, scoped to the action
3. Each browser session has its own FamilySession (never shared)
4. Derived numbers are recomputed from the document on every render
"""

import asyncio
from datetime import date

import streamlit as st

from semesmart.config import validate_all_settings
from semesmart.models import (
    EXPENSE_CATEGORIES,
    CardDraft,
    CardIssuer,
    ChallengeStatus,
    CreateGoal,
    CreateMember,
    EditGoal,
    EditMember,
    FamilyProfileDraft,
    GoalFields,
    MemberFields,
    MemberRole,
    PaymentMethod,
    TransactionDraft,
    TransactionKind,
)
from semesmart.orchestrator import (
    FamilySession,
    InsightStatus,
    SessionLoadError,
    create_app_components,
)
from semesmart.queries import (
    ALL_MEMBERS,
    MonthPeriod,
    balance,
    build_dashboard,
    expenses_by_category,
    filter_transactions,
    goal_progress,
)
from semesmart.services import (
    AuthError,
    FirebaseAuthService,
    FirestoreUserDataStorage,
    StorageError,
    suggest_income_source,
)
from semesmart.updates import UnknownEntityError
from semesmart.validation import EntryValidationError, PermissionDeniedError, can_edit


# Page configuration
st.set_page_config(
    page_title="SemeSmart",
    page_icon="🌱",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

USER_FACING_ERRORS = (AuthError, EntryValidationError, PermissionDeniedError)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def format_brl(value: float) -> str:
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


@st.cache_resource
def get_backends():
    """Identity provider and Firestore storage (shared, stateless)."""
    return FirebaseAuthService(), FirestoreUserDataStorage()


def get_session() -> FamilySession:
    """This browser session's FamilySession."""
    if "family_session" not in st.session_state:
        identity_provider, storage = get_backends()
        st.session_state.family_session = create_app_components(
            storage=storage,
            identity_provider=identity_provider,
        )
    return st.session_state.family_session


def perform(action, success_message=None) -> bool:
    """Run a session coroutine, show its outcome, return True on success."""
    try:
        run_async(action)
    except USER_FACING_ERRORS as e:
        st.error(e.user_message)
        return False
    except UnknownEntityError:
        st.error("Este item não existe mais. Atualize a página.")
        return False
    except SessionLoadError as e:
        st.error(str(e))
        return False
    except StorageError:
        st.error("Não foi possível salvar. Verifique sua conexão e tente novamente.")
        return False
    if success_message:
        st.success(success_message)
    return True


def main():
    """Main application entry point."""
    status = validate_all_settings()
    if not status.get("firebase", False):
        render_not_configured(status)
        return

    session = get_session()
    if not session.is_authenticated:
        render_auth_page(session)
        return

    data = session.user_data
    profile = data.family_profile

    st.sidebar.title(f"{profile.avatar if not profile.has_image_avatar else '🏠'} {profile.name}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navegar para:",
        ["🏠 Início", "💸 Gastos", "📊 Relatórios", "🎯 Metas", "👨‍👩‍👧 Perfil", "⚙️ Configurações"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Sair"):
        run_async(session.sign_out())
        st.rerun()

    if not data.has_seen_onboarding:
        render_onboarding(session)
        return

    if page == "🏠 Início":
        render_home_page(session)
    elif page == "💸 Gastos":
        render_transactions_page(session)
    elif page == "📊 Relatórios":
        render_reports_page(session)
    elif page == "🎯 Metas":
        render_goals_page(session)
    elif page == "👨‍👩‍👧 Perfil":
        render_profile_page(session)
    elif page == "⚙️ Configurações":
        render_settings_page()


def render_not_configured(status: dict):
    st.title("🌱 SemeSmart")
    st.markdown(f"""
    <div class="error-box">
        <h4>Firebase não configurado</h4>
        <p>{status.get("firebase_error", "Defina FIREBASE_WEB_API_KEY e as credenciais no arquivo .env.")}</p>
    </div>
    """, unsafe_allow_html=True)


def render_auth_page(session: FamilySession):
    st.title("🌱 SemeSmart")
    st.markdown("Controle financeiro para toda a família.")

    login_tab, register_tab, google_tab = st.tabs(["Entrar", "Criar conta", "Google"])

    with login_tab:
        with st.form("login"):
            email = st.text_input("E-mail")
            password = st.text_input("Senha", type="password")
            if st.form_submit_button("Entrar", type="primary"):
                if perform(session.sign_in(email, password)):
                    st.rerun()

    with register_tab:
        with st.form("register"):
            name = st.text_input("Seu nome")
            title = st.text_input("Como a família te chama (Pai, Mãe, ...)")
            email = st.text_input("E-mail", key="register_email")
            password = st.text_input("Senha", type="password", key="register_password")
            if st.form_submit_button("Criar conta", type="primary"):
                if perform(session.register(name, title, email, password)):
                    st.rerun()

    with google_tab:
        st.caption("Cole o token de ID obtido no login com Google.")
        token = st.text_input("Google ID token", type="password")
        if st.button("Entrar com Google"):
            if perform(session.sign_in_with_google(token.strip())):
                st.rerun()


def render_onboarding(session: FamilySession):
    st.title("👋 Bem-vindo ao SemeSmart!")
    st.markdown("""
    <div class="info-box">
        <p>Registre entradas e gastos da família, acompanhe metas de economia
        e participe de desafios. Na aba Relatórios, a IA sugere dicas a partir dos seus gastos.</p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Começar", type="primary"):
            if perform(session.complete_onboarding()):
                st.rerun()
    with col2:
        if st.button("Pular"):
            if perform(session.complete_onboarding()):
                st.rerun()


def render_home_page(session: FamilySession):
    data = session.user_data
    period = MonthPeriod.current()
    summary = build_dashboard(data, period)

    st.title("🏠 Início")

    col1, col2, col3 = st.columns(3)
    col1.metric("Entradas do mês", format_brl(summary.income))
    col2.metric("Gastos do mês", format_brl(summary.expenses))
    col3.metric("Saldo do mês", format_brl(summary.balance))
    st.caption(f"Saldo total: {format_brl(balance(data.transactions))}")

    st.markdown("### Principais categorias")
    if summary.top_categories:
        for item in summary.top_categories:
            st.markdown(f"- **{item.category.value}**: {format_brl(item.total)}")
    else:
        st.info("Nenhum gasto neste mês.")

    if summary.featured_goal:
        goal = summary.featured_goal.goal
        st.markdown(f"### {goal.illustration} {goal.name}")
        st.progress(min(summary.featured_goal.progress, 100.0) / 100)
        st.caption(f"{summary.featured_goal.progress:.0f}% de {format_brl(goal.target_amount)}")

    render_challenges(session)

    st.markdown("---")
    income_tab, expense_tab = st.tabs(["➕ Entrada", "➖ Gasto"])
    with income_tab:
        render_transaction_form(session, TransactionKind.INCOME)
    with expense_tab:
        render_transaction_form(session, TransactionKind.EXPENSE)


def render_challenges(session: FamilySession):
    st.markdown("### Desafios")
    labels = {
        ChallengeStatus.AVAILABLE: "Aceitar",
        ChallengeStatus.ACTIVE: "Concluir",
    }
    for challenge in session.user_data.challenges:
        col1, col2 = st.columns([4, 1])
        col1.markdown(f"{challenge.icon} **{challenge.title}**: {challenge.description}")
        if challenge.status is ChallengeStatus.COMPLETED:
            col2.markdown("✅ Concluído")
        elif col2.button(labels[challenge.status], key=f"challenge_{challenge.id}"):
            if perform(session.advance_challenge(challenge.id)):
                st.rerun()


def render_transaction_form(session: FamilySession, kind: TransactionKind):
    data = session.user_data
    suggestions = session.suggestions
    members = {member.id: member for member in data.members}

    with st.form(f"transaction_{kind.value}", clear_on_submit=True):
        description = st.text_input("Descrição")
        amount_text = st.text_input("Valor (R$)", placeholder="0,00")
        when = st.date_input("Data", value=date.today())
        member_id = st.selectbox(
            "Membro",
            options=list(members),
            format_func=lambda mid: members[mid].name,
        )

        category = None
        payment_method = None
        location = None
        income_source = None

        if kind is TransactionKind.EXPENSE:
            category = st.selectbox("Categoria", options=EXPENSE_CATEGORIES, format_func=lambda c: c.value)
            payment_method = st.selectbox("Pagamento", options=list(PaymentMethod), format_func=lambda p: p.value)
            known = suggestions.locations() if suggestions else []
            location = st.text_input("Local", help=", ".join(known) if known else None)
        else:
            default_source = suggest_income_source(members.get(member_id)) or ""
            known = suggestions.income_sources() if suggestions else []
            income_source = st.text_input(
                "Origem",
                value=default_source,
                help=", ".join(known) if known else None,
            )

        if st.form_submit_button("Salvar", type="primary"):
            draft = TransactionDraft(
                kind=kind,
                description=description,
                amount_text=amount_text,
                member_id=member_id,
                date=when,
                category=category,
                payment_method=payment_method,
                location=location,
                income_source=income_source,
            )
            if perform(session.add_transaction(draft), "Lançamento salvo!"):
                st.rerun()


def render_transactions_page(session: FamilySession):
    data = session.user_data
    members = {member.id: member for member in data.members}

    st.title("💸 Gastos")

    member_filter = st.selectbox(
        "Membro",
        options=[ALL_MEMBERS, *members],
        format_func=lambda mid: "Todos" if mid == ALL_MEMBERS else members[mid].name,
    )

    transactions = filter_transactions(data.transactions, member_filter)
    if not transactions:
        st.info("Nenhum lançamento encontrado.")
        return

    for tx in transactions:
        who = members[tx.member_id].name if tx.member_id in members else "?"
        sign = "🟢" if tx.is_income else "🔴"
        details = tx.location or tx.income_source or (tx.payment_method.value if tx.payment_method else "")
        st.markdown(
            f"{sign} **{tx.description}** · {tx.category.value} · {who} · "
            f"{tx.date.strftime('%d/%m/%Y')} · {format_brl(tx.amount)}"
            + (f" · {details}" if details else "")
        )


def render_reports_page(session: FamilySession):
    data = session.user_data

    st.title("📊 Relatórios")

    st.markdown("### Gastos por categoria (total)")
    totals = expenses_by_category(data.transactions)
    if totals:
        st.bar_chart({item.category.value: item.total for item in totals})
    else:
        st.info("Nenhum gasto registrado ainda.")

    st.markdown("### 💡 Dicas da IA")
    if st.button("Gerar dicas"):
        with st.spinner("Analisando seus gastos..."):
            report = run_async(session.get_insights())

        if report.status is InsightStatus.READY:
            for insight in report.insights:
                st.markdown(f"""
                <div class="success-box">
                    <h4>{insight.title}</h4>
                    <p>{insight.description}</p>
                </div>
                """, unsafe_allow_html=True)
        elif report.status is InsightStatus.INSUFFICIENT_DATA:
            st.info(report.message)
        else:
            st.markdown(f"""
            <div class="error-box">
                <p>{report.message}</p>
            </div>
            """, unsafe_allow_html=True)


def render_goals_page(session: FamilySession):
    data = session.user_data

    st.title("🎯 Metas")

    for goal in data.goals:
        progress = goal_progress(goal)
        with st.expander(f"{goal.illustration} {goal.name} · {progress:.0f}%"):
            st.progress(min(progress, 100.0) / 100)
            with st.form(f"goal_{goal.id}"):
                name = st.text_input("Nome", value=goal.name)
                target = st.number_input("Valor da meta", value=goal.target_amount, min_value=0.0)
                current = st.number_input("Valor guardado", value=goal.current_amount, min_value=0.0)
                deadline = st.date_input("Prazo", value=goal.deadline)
                if st.form_submit_button("Salvar"):
                    command = EditGoal(
                        goal_id=goal.id,
                        fields=GoalFields(
                            name=name,
                            target_amount=target,
                            illustration=goal.illustration,
                            deadline=deadline,
                        ),
                        current_amount=current,
                    )
                    if perform(session.save_goal(command), "Meta atualizada!"):
                        st.rerun()

    st.markdown("### Nova meta")
    with st.form("new_goal", clear_on_submit=True):
        name = st.text_input("Nome")
        target = st.number_input("Valor da meta", min_value=0.0)
        illustration = st.text_input("Emoji", value="🎯")
        deadline = st.date_input("Prazo", value=None)
        if st.form_submit_button("Criar meta", type="primary"):
            command = CreateGoal(fields=GoalFields(
                name=name,
                target_amount=target,
                illustration=illustration,
                deadline=deadline,
            ))
            if perform(session.save_goal(command), "Meta criada!"):
                st.rerun()


def render_profile_page(session: FamilySession):
    data = session.user_data
    acting = session.acting_member

    st.title("👨‍👩‍👧 Perfil da família")

    if acting and acting.role is MemberRole.ADMINISTRADOR:
        with st.form("family_profile"):
            name = st.text_input("Nome da família", value=data.family_profile.name)
            avatar = st.text_input("Avatar", value=data.family_profile.avatar)
            if st.form_submit_button("Salvar perfil"):
                draft = FamilyProfileDraft(name=name, avatar=avatar)
                if perform(session.edit_family_profile(draft), "Perfil atualizado!"):
                    st.rerun()

    st.markdown("### Membros")
    for member in data.members:
        with st.expander(f"{member.avatar} {member.name} · {member.title or member.role.value}"):
            if not can_edit(acting, member):
                st.caption("Somente leitura")
                continue
            with st.form(f"member_{member.id}"):
                fields = member_form(member)
                if st.form_submit_button("Salvar"):
                    command = EditMember(member_id=member.id, fields=fields)
                    if perform(session.save_member(command), "Membro atualizado!"):
                        st.rerun()

    with st.form("new_member", clear_on_submit=True):
        st.markdown("**Novo membro**")
        fields = member_form(None)
        if st.form_submit_button("Adicionar membro"):
            if perform(session.save_member(CreateMember(fields=fields)), "Membro adicionado!"):
                st.rerun()

    st.markdown("### Cartões")
    for card in data.cards:
        st.markdown(f"💳 **{card.name}** · {card.issuer.value} · •••• {card.last4}")

    with st.form("new_card", clear_on_submit=True):
        name = st.text_input("Nome do cartão")
        last4 = st.text_input("Últimos 4 dígitos", max_chars=4)
        issuer = st.selectbox("Bandeira", options=list(CardIssuer), format_func=lambda i: i.value)
        if st.form_submit_button("Adicionar cartão"):
            if perform(session.add_card(CardDraft(name=name, last4=last4, issuer=issuer)), "Cartão adicionado!"):
                st.rerun()


def member_form(member) -> MemberFields:
    roles = list(MemberRole)
    name = st.text_input("Nome", value=member.name if member else "")
    title = st.text_input("Título (Pai, Mãe, Filho, ...)", value=member.title if member else "")
    role = st.selectbox(
        "Papel",
        options=roles,
        index=roles.index(member.role) if member else roles.index(MemberRole.MEMBRO),
        format_func=lambda r: r.value,
    )
    avatar = st.text_input("Avatar", value=member.avatar if member else "😊")
    income_source = st.text_input(
        "Fonte de renda",
        value=(member.income_source or "") if member else "",
    )
    return MemberFields(
        name=name,
        title=title,
        role=role,
        avatar=avatar,
        income_source=income_source or None,
    )


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Configurações")

    st.markdown("### Status das conexões")

    status = validate_all_settings()

    services = [
        ("Firebase (Login e dados)", "firebase"),
        ("Gemini (Dicas da IA)", "gemini"),
        ("Aplicativo", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configurado")
        else:
            error = status.get(f"{key}_error", "Não configurado")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(
        "Para configurar o aplicativo, crie um arquivo `.env` com as chaves. "
        "Veja `.env.example` para as variáveis necessárias."
    )


if __name__ == "__main__":
    main()
