import logging
from datetime import datetime

import pandas as pd
import streamlit as st

from core.config import settings
from core.errors import ClientError, DecodeError, HttpStatusError, NotAuthenticated, PlanFetchError
from core.execution_logs import download_filename, list_execution_records, regenerate_script
from core.pipeline import ScriptPipeline
from core.plan_loader import load_plan
from core.session import ExecutorState, Session
from core.testcases import describe_project, filter_test_cases, list_test_cases

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="AI Test Executor", layout="wide")
st.markdown(
    """
    <style>
    div[data-testid="stTable"], div[data-testid="stDataFrame"] table {
        white-space: normal !important;
        word-break: break-word;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

if 'session' not in st.session_state:
    st.session_state['session'] = Session.from_settings()
if 'executors' not in st.session_state:
    st.session_state['executors'] = {}

session: Session = st.session_state['session']

st.title("🤖 AI Test Executor")
st.markdown("Load test plans, generate Playwright scripts and run them on the execution service")

# Sidebar for Setup
with st.sidebar:
    st.header("Configuration")
    session.base_url = st.text_input("Service URL", value=session.base_url)
    token = st.text_input("Bearer Token", value=session.token or "", type="password")
    session.token = token or None
    project_id = st.text_input("Project ID", value=session.current_project_id or "")
    if project_id:
        try:
            session.select_project(project_id)
        except KeyError as e:
            st.error(str(e))
            project_id = ""

    if st.button("Sign Out"):
        session.invalidate()
        st.session_state['executors'] = {}
        st.session_state.pop('execution_records', None)
        st.session_state.pop('script_preview', None)
        st.rerun()

    if project_id:
        title, details = describe_project(session, project_id)
        st.subheader(title)
        st.text(details)


def get_client():
    try:
        return session.client()
    except NotAuthenticated:
        st.warning("Enter a bearer token in the sidebar first.")
        st.stop()


def get_state(project_id: str) -> ExecutorState:
    executors = st.session_state['executors']
    if project_id not in executors:
        executors[project_id] = ExecutorState(project_id=project_id)
    return executors[project_id]


def start_run(state: ExecutorState):
    state.running = True


if not project_id:
    st.info("Enter a project ID in the sidebar to begin.")
    st.stop()

state = get_state(project_id)

tab1, tab2, tab3 = st.tabs(["📂 Test Cases", "🧪 AI Test Executor", "📜 Execution Logs"])

# --- Tab 1: Test Cases ---
with tab1:
    st.header("1. Test Cases")

    if st.button("Load Test Cases"):
        client = get_client()
        with st.spinner("Loading test cases..."):
            state.log.append("Loading test cases from API...")
            try:
                state.test_cases = list_test_cases(client, project_id)
                state.log.append(f"✓ Loaded {len(state.test_cases)} test cases")
            except HttpStatusError as e:
                state.log.append(f"✗ Failed to load test cases: {e.status_code}\n{e.body}")
                st.error(f"Failed to load test cases: {e.status_code}")
            except ClientError as e:
                state.log.append(f"✗ Error loading test cases: {e}")
                st.error(f"Error: {e}")

    search = st.text_input("Search by test case ID")
    shown = filter_test_cases(state.test_cases, search)
    if shown:
        df = pd.DataFrame(
            [
                {
                    "Test Case": tc.testcaseid,
                    "Description": tc.testdesc,
                    "Prerequisite Test": tc.pretestid,
                    "Prerequisites": tc.prereq,
                    "Tags": ", ".join(tc.tag),
                }
                for tc in shown
            ]
        )
        st.dataframe(df, use_container_width=True)
    elif state.test_cases:
        st.info("No test cases match the search.")
    else:
        st.info("No test cases loaded yet.")

# --- Tab 2: AI Test Executor ---
with tab2:
    st.header("2. Generate and Execute")

    if not state.test_cases:
        st.warning("Please load test cases in Tab 1 first.")
    else:
        ids = [tc.testcaseid for tc in state.test_cases]
        index = ids.index(state.selected_test_case_id) if state.selected_test_case_id in ids else 0
        selected = st.selectbox("Select a Test Case", ids, index=index)

        if st.button("Load Plan"):
            state.select_test_case(selected)
            client = get_client()
            with st.spinner("Fetching test plan..."):
                try:
                    state.plan = load_plan(client, selected, log=state.log)
                except PlanFetchError as e:
                    st.error(f"ERROR {e.status_code}:\n{e.body}")
                except DecodeError as e:
                    st.warning("Test plan is not valid JSON, showing the raw response.")
                    st.code(e.body)
                except ClientError as e:
                    state.log.append(f"✗ Error fetching test plan: {e}")
                    st.error(f"ERROR: {e}")

        if state.plan is not None and state.plan.test_case_id == selected:
            with st.expander("Test Plan", expanded=True):
                st.code(state.plan.pretty(), language="json")

        ready = state.plan is not None and state.plan.test_case_id == selected
        if st.button("Execute", disabled=state.running or not ready, on_click=start_run, args=(state,)):
            try:
                client = get_client()
                with st.spinner("Generating and executing script..."):
                    result = ScriptPipeline(client, state.log).run(state.selected_test_case_id, state.plan)
                if result.ok:
                    st.success("Script executed successfully")
                    st.code(result.script, language="python")
                else:
                    st.error(f"Run stopped: {result.status.value.replace('_', ' ')}")
            finally:
                state.running = False

    st.subheader("Execution Log")
    st.text_area("Log", value=state.log.text, height=400, disabled=True, label_visibility="collapsed")
    if st.button("Clear Log"):
        state.log.clear()
        st.rerun()

# --- Tab 3: Execution Logs ---
with tab3:
    st.header("3. Execution History")

    if st.button("Load Execution History"):
        client = get_client()
        with st.spinner("Loading execution history..."):
            try:
                st.session_state['execution_records'] = list_execution_records(client)
            except ClientError as e:
                st.error(f"Error: {e}")

    records = st.session_state.get('execution_records')
    if records is None:
        st.info("Load the execution history to browse past runs.")
    elif not records:
        st.info("No execution records found.")
    else:
        st.write(f"Loaded {len(records)} execution records")
        df = pd.DataFrame([r.model_dump(exclude={"output"}) for r in records])
        st.dataframe(df, use_container_width=True)

        options = {f"{r.testcaseid} (Execution {r.exeid})": r for r in records}
        selected_option = st.selectbox("Select an Execution", list(options.keys()))

        if st.button("Generate Script"):
            record = options[selected_option]
            client = get_client()
            with st.spinner("Fetching test plan and generating script..."):
                try:
                    st.session_state['script_preview'] = regenerate_script(client, record)
                except PlanFetchError:
                    st.error("Error fetching test plan")
                except HttpStatusError as e:
                    st.error(f"Error generating script: {e.status_code}\n{e.body}")
                except (ClientError, ValueError) as e:
                    st.error(f"Error: {e}")

        preview = st.session_state.get('script_preview')
        if preview is not None:
            st.subheader(f"Generated Playwright Script - {preview.test_case_id}")
            st.code(preview.script, language="python")
            st.subheader("Execution Log")
            st.code(preview.stored_output or "", language="text")
            st.download_button(
                "⬇ Download Script",
                preview.script,
                file_name=download_filename(preview.test_case_id, datetime.now()),
            )
