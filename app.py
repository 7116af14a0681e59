import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.io as pio
import plotly.express as px

from services import (
    AIService,
    ChartService,
    ChatService,
    DataFormattingService,
    SchemaRegistry,
    get_config,
)

# Initialize configuration
config = get_config()

# Apply chart configuration
px.defaults.color_discrete_sequence = config.CHART_COLORS
pio.templates["data_chat_dark"] = go.layout.Template(layout=config.get_chart_layout())
px.defaults.template = "data_chat_dark"

chart_service = ChartService()
data_formatting_service = DataFormattingService()

# Page configuration
st.set_page_config(
    page_title="Data Chat",
    page_icon="💬",
    layout="wide",
    initial_sidebar_state="expanded"
)

def inject_css():
    st.markdown("""
    <style>
      :root{
        --dc-bg:#0B1020;
        --dc-surface:#111827;
        --dc-border:#1F2937;
        --dc-text:#E5E7EB;
        --dc-text-dim:#9CA3AF;
        --dc-primary:#2563EB;
        --dc-accent:#10B981;
        --dc-danger:#EF4444;
      }
      .stApp { background: var(--dc-bg); color: var(--dc-text) !important; }
      .chat-message { padding: 10px 14px; border-radius: 12px; margin: 6px 0; border: 1px solid var(--dc-border); }
      .user-message { background: #172554; }
      .ai-message { background: var(--dc-surface); }
      .error-message { border-color: var(--dc-danger); }
      .insight-item { background: var(--dc-surface); border-left: 4px solid var(--dc-accent); padding: 6px 10px; margin: 4px 0; border-radius: 6px; }
      .sql-block code { background: #0F172A !important; color: var(--dc-text) !important; }
    </style>
    """, unsafe_allow_html=True)

inject_css()

# Initialize session state
if 'registry' not in st.session_state:
    st.session_state.registry = SchemaRegistry()
if 'chat_history' not in st.session_state:
    st.session_state.chat_history = []
if 'use_ai' not in st.session_state:
    st.session_state.use_ai = config.use_gemini()
if 'upload_status' not in st.session_state:
    st.session_state.upload_status = None


def get_chat_service() -> ChatService:
    """Chat service bound to this browser session's registry."""
    return ChatService(
        registry=st.session_state.registry,
        ai_service=AIService(use_ai=st.session_state.use_ai),
    )


def render_response(response, idx: int):
    css = "chat-message ai-message error-message" if response.error else "chat-message ai-message"
    st.markdown(f'<div class="{css}">🤖 <strong>AI Assistant:</strong></div>', unsafe_allow_html=True)
    st.markdown(response.message)

    if response.error or not response.sql:
        return
    if not response.rows:
        st.info("No results found.")
        return

    if response.insights:
        st.markdown("#### 📊 Key Insights")
        for insight in response.insights:
            st.markdown(f'<div class="insight-item">{insight}</div>', unsafe_allow_html=True)

    if response.metrics:
        metric_cols = st.columns(len(response.metrics))
        for col, metric in zip(metric_cols, response.metrics):
            col.metric(metric['label'], metric['value'])

    if response.chart is not None and 1 < len(response.rows) < config.MAX_DISPLAY_ROWS:
        fig = chart_service.build_figure(response.rows, response.chart)
        if fig is not None:
            st.plotly_chart(fig, use_container_width=True, key=f"plot_chat_{idx}")

    table = pd.DataFrame(list(response.rows), columns=list(response.columns))
    st.markdown(f"#### 📋 Data Table ({len(response.rows)} rows)")
    st.dataframe(
        data_formatting_service.format_result_frame(table, max_rows=config.MAX_DISPLAY_ROWS),
        use_container_width=True,
        hide_index=True,
    )
    if len(response.rows) > config.MAX_DISPLAY_ROWS:
        st.caption(f"Showing first {config.MAX_DISPLAY_ROWS} of {len(response.rows)} rows")


def submit_question(question: str):
    st.session_state.chat_history.append({"role": "user", "content": question})
    with st.spinner("🤔 Translating your question..."):
        response = get_chat_service().ask(question)
    if response is not None:
        st.session_state.chat_history.append({"role": "assistant", "content": response})
    st.rerun()


st.title("💬 Data Chat")
st.caption("Upload a CSV or Excel file and ask questions about it in plain English.")

# Sidebar: AI backend status
with st.sidebar:
    st.markdown("### ⚙️ Settings")
    ai_configured = config.use_gemini()
    st.session_state.use_ai = st.toggle(
        "Use Gemini for SQL generation",
        value=bool(st.session_state.use_ai and ai_configured),
        disabled=not ai_configured,
        help="When off, or when Gemini fails, questions are answered with built-in pattern matching.",
    )
    if not ai_configured:
        st.caption("No GEMINI_API_KEY configured. Using smart pattern matching.")

    session = st.session_state.registry.current
    if session is not None:
        st.markdown("### 📁 Active dataset")
        st.markdown(f"**{session.source_name}** · {session.row_count:,} rows")
        st.markdown(", ".join(f"`{c}`" for c in session.schema))

tab1, tab2 = st.tabs(["📤 Upload Data", "💬 Chat with your data"])

# Tab 1: Upload Data
with tab1:
    uploaded_file = st.file_uploader(
        "Choose a CSV or Excel file",
        type=[ext.lstrip('.') for ext in config.SUPPORTED_EXTENSIONS],
        help=f"Supported formats: .csv, .xlsx, .xls | Maximum file size: {config.MAX_FILE_SIZE_MB}MB",
    )
    if uploaded_file is not None and st.button("Load file", key="btn_load_file"):
        with st.spinner("Processing your data... Please wait."):
            result = get_chat_service().upload(uploaded_file.name, uploaded_file.getvalue())
        st.session_state.upload_status = (result.success, result.message)
        if result.success:
            st.session_state.chat_history = []
        st.rerun()

    if st.session_state.upload_status:
        ok, message = st.session_state.upload_status
        if ok:
            st.success(message)
        else:
            st.error(message)

    session = st.session_state.registry.current
    if session is not None:
        with st.expander("🔍 Preview", expanded=False):
            preview = session.connection.execute(
                f"SELECT * FROM {session.table_name} LIMIT {config.DEFAULT_SAMPLE_LIMIT}"
            ).fetchdf()
            st.dataframe(preview, use_container_width=True, hide_index=True)

# Tab 2: Chat
with tab2:
    if st.session_state.registry.current is None:
        st.warning("👆 Please upload your data in the 'Upload Data' tab first")
    else:
        for idx, message in enumerate(st.session_state.chat_history):
            if message["role"] == "user":
                st.markdown(
                    f'<div class="chat-message user-message">🧑 <strong>You:</strong> {message["content"]}</div>',
                    unsafe_allow_html=True,
                )
            else:
                render_response(message["content"], idx)

        st.markdown("### Quick Questions")
        examples = ["Show first 10 rows", "Count rows", "Show a chart by category"]
        for col, example in zip(st.columns(len(examples)), examples):
            if col.button(example, key=f"example_{example}"):
                submit_question(example)

        user_input = st.chat_input("Ask a question about your data...", key="main_chat")
        if user_input:
            submit_question(user_input)

        if st.session_state.chat_history:
            if st.button("🗑️ Clear Chat History"):
                st.session_state.chat_history = []
                st.rerun()
