import sys
import logging
import os
from pathlib import Path
from urllib.parse import urlparse
from datetime import datetime

import streamlit as st

# Ensure project root is on sys.path so absolute imports work when run via `streamlit run extractor_app/app.py`
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from extractor_app import state as app_state
from extractor_app.browser_actions import render_copy_button, render_csv_download
from extractor_app.config import AppConfig, CONFIG_PATH
from extractor_app.models import AgentResult, DEFAULT_FORMAT, FORMAT_OPTIONS, PREDEFINED_PARAMS, HistoryItem
from extractor_app.results import (
    ResultsView,
    build_copy_all_text,
    build_csv,
    build_fields_text,
    error_message,
    processed_count,
    select_view,
    table_frame,
    visible_fields,
)
from extractor_app.storage import JsonFileStore
from extractor_app.theme import DARK_CSS


logging.basicConfig(
    level=os.getenv("EXTRACTOR_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Web Content Extractor & Synthesizer", layout="wide")

# 表单控件的 session_state key
URL_KEY = "url_input"
CUSTOM_KEY = "custom_param_input"
FORMAT_KEY = "format_input"
INSTRUCTIONS_KEY = "instructions_input"


def get_store(app_cfg: AppConfig) -> JsonFileStore:
    return JsonFileStore(Path(app_cfg.storage_path))


def get_state(store: JsonFileStore) -> app_state.AppState:
    if "app_state" not in st.session_state:
        st.session_state["app_state"] = app_state.initial_state(store)
    return st.session_state["app_state"]


def sync_widgets(s: app_state.AppState) -> None:
    """把 AppState 写回表单控件（只能在控件创建之前或回调中调用）"""
    st.session_state[URL_KEY] = s.url
    st.session_state[CUSTOM_KEY] = s.custom_param
    st.session_state[FORMAT_KEY] = s.format if s.format in FORMAT_OPTIONS else DEFAULT_FORMAT
    st.session_state[INSTRUCTIONS_KEY] = s.instructions


# --- 回调 ---

def on_form_change(s: app_state.AppState) -> None:
    s.url = st.session_state.get(URL_KEY, "")
    s.format = st.session_state.get(FORMAT_KEY, s.format)
    s.instructions = st.session_state.get(INSTRUCTIONS_KEY, "")


def on_add_custom(s: app_state.AppState) -> None:
    app_state.add_custom_param(s, st.session_state.get(CUSTOM_KEY, ""))
    st.session_state[CUSTOM_KEY] = s.custom_param


def on_submit(s: app_state.AppState) -> None:
    on_form_change(s)
    if app_state.can_submit(s):
        app_state.begin_extraction(s)


def on_select_history(s: app_state.AppState, item: HistoryItem) -> None:
    app_state.select_history(s, item)
    sync_widgets(s)


# --- 侧边栏 ---

def render_header(s: app_state.AppState, store: JsonFileStore) -> None:
    col_title, col_theme = st.columns([10, 1])
    with col_title:
        st.title("Web Content Extractor & Synthesizer 🌐")
        st.caption("输入 URL 并选择需要提取的参数，由 AI Agent 返回结构化数据")
    with col_theme:
        st.button(
            "☀️" if s.theme == "dark" else "🌙",
            help="切换深色/浅色主题",
            on_click=app_state.toggle_theme,
            args=(s, store),
        )
    if s.theme == "dark":
        st.markdown(DARK_CSS, unsafe_allow_html=True)


def render_agent_settings(app_cfg: AppConfig) -> AppConfig:
    st.sidebar.header("Agent 配置")
    with st.sidebar.expander("连接设置", expanded=False):
        app_cfg.agent.base_url = st.text_input("Agent API URL", value=app_cfg.agent.base_url)
        app_cfg.agent.api_key = st.text_input(
            "API Key（可选）",
            value=app_cfg.agent.api_key,
            type="password",
        )
        app_cfg.agent.agent_id = st.text_input("Agent ID", value=app_cfg.agent.agent_id)
        if st.button("💾 保存配置"):
            app_cfg.save(CONFIG_PATH)
            logger.info("Saved config to %s", CONFIG_PATH)
            st.success("配置已保存到本地 extractor_config.json")
    return app_cfg


def _history_label(item: HistoryItem) -> str:
    host = urlparse(item.url).hostname or item.url
    try:
        when = datetime.fromisoformat(item.timestamp.replace("Z", "+00:00")).astimezone()
        when_text = when.strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        when_text = item.timestamp
    params = ", ".join(item.parameters[:2])
    if len(item.parameters) > 2:
        params += f" +{len(item.parameters) - 2}"
    return f"**{host}**  \n{when_text}  \n{params}"


def render_history(s: app_state.AppState, store: JsonFileStore) -> None:
    st.sidebar.markdown("---")
    col_title, col_clear = st.sidebar.columns([4, 1])
    col_title.subheader("历史记录")
    if s.history:
        col_clear.button(
            "🗑️",
            help="清空历史记录",
            on_click=app_state.request_clear_history,
            args=(s,),
            disabled=s.busy,
        )
    st.sidebar.caption(f"共 {len(s.history)} 条提取记录")

    if s.confirming_clear:
        st.sidebar.warning("确定要清空全部历史记录吗？")
        col_yes, col_no = st.sidebar.columns(2)
        col_yes.button("确认", on_click=app_state.confirm_clear_history, args=(s, store))
        col_no.button("取消", on_click=app_state.cancel_clear_history, args=(s,))

    if not s.history:
        st.sidebar.caption("暂无历史记录，先从一个 URL 开始提取吧")
        return

    for item in s.history:
        st.sidebar.button(
            _history_label(item),
            key=f"history_{item.id}",
            type="primary" if item.id == s.selected_history_id else "secondary",
            on_click=on_select_history,
            args=(s, item),
            disabled=s.busy,
            use_container_width=True,
        )


# --- 表单 ---

def render_form(s: app_state.AppState) -> None:
    for key, value in (
        (URL_KEY, s.url),
        (CUSTOM_KEY, s.custom_param),
        (FORMAT_KEY, s.format),
        (INSTRUCTIONS_KEY, s.instructions),
    ):
        if key not in st.session_state:
            st.session_state[key] = value

    st.markdown("### 提取配置")
    st.text_input(
        "URL",
        key=URL_KEY,
        placeholder="https://example.com",
        on_change=on_form_change,
        args=(s,),
        disabled=s.busy,
    )

    st.markdown("**需要提取的参数**")
    chip_cols = st.columns(len(PREDEFINED_PARAMS))
    for col, param in zip(chip_cols, PREDEFINED_PARAMS):
        selected = param in s.selected_params
        col.button(
            f"{param} ✕" if selected else param,
            key=f"chip_{param}",
            type="primary" if selected else "secondary",
            on_click=app_state.toggle_param,
            args=(s, param),
            disabled=s.busy,
        )

    custom = [p for p in s.selected_params if p not in PREDEFINED_PARAMS]
    if custom:
        st.caption("自定义参数：" + "、".join(custom))
        for param in custom:
            st.button(
                f"{param} ✕",
                key=f"custom_chip_{param}",
                on_click=app_state.toggle_param,
                args=(s, param),
                disabled=s.busy,
            )

    col_input, col_add = st.columns([8, 1])
    with col_input:
        # 回车会触发 on_change
        st.text_input(
            "自定义参数",
            key=CUSTOM_KEY,
            placeholder="添加自定义参数...",
            on_change=on_add_custom,
            args=(s,),
            disabled=s.busy,
            label_visibility="collapsed",
        )
    with col_add:
        st.button(
            "➕",
            on_click=on_add_custom,
            args=(s,),
            disabled=s.busy or not st.session_state.get(CUSTOM_KEY, "").strip(),
        )

    options = list(FORMAT_OPTIONS.keys())
    st.selectbox(
        "输出格式",
        options=options,
        key=FORMAT_KEY,
        format_func=lambda v: FORMAT_OPTIONS[v],
        on_change=on_form_change,
        args=(s,),
        disabled=s.busy,
    )
    st.text_area(
        "附加说明（可选）",
        key=INSTRUCTIONS_KEY,
        placeholder="补充任何针对本次提取的说明...",
        height=90,
        on_change=on_form_change,
        args=(s,),
        disabled=s.busy,
    )

    on_form_change(s)
    st.button(
        "⏳ 正在提取..." if s.busy else "🚀 提取并汇总",
        type="primary",
        on_click=on_submit,
        args=(s,),
        disabled=not app_state.can_submit(s),
    )


# --- 结果 ---

def render_actions(result: AgentResult) -> None:
    col_info, col_copy, col_csv = st.columns([6, 2, 1])
    col_info.success(f"✅ 提取完成，共处理 {processed_count(result)} 个 URL")
    with col_copy:
        # 复制和下载都在浏览器的点击事件里完成
        render_copy_button(build_copy_all_text(result), "📋 复制全部", "已复制!")
    csv_text = build_csv(result)
    if csv_text is not None:
        with col_csv:
            render_csv_download(csv_text, "⬇️ CSV")


def render_results(s: app_state.AppState) -> None:
    st.markdown("### 提取结果")
    view = select_view(s.response, s.busy)

    if view is ResultsView.LOADING:
        st.info("正在从 URL 提取内容...")
        for _ in range(3):
            st.markdown("░" * 40)
        return

    if view is ResultsView.EMPTY:
        st.caption("提取完成后结果会显示在这里")
        return

    if view is ResultsView.ERROR:
        st.error("提取失败")
        st.write(error_message(s.response))
        return

    result = AgentResult.from_dict(s.response.result)
    render_actions(result)

    if result.summary:
        st.markdown("#### 摘要")
        st.markdown(result.summary)

    if result.extracted_data:
        st.markdown("#### 提取数据")
        for item in result.extracted_data:
            with st.container(border=True):
                col_title, col_copy = st.columns([6, 2])
                col_title.markdown(f"**{item.title}**  \n[{item.url}]({item.url})")
                with col_copy:
                    render_copy_button(build_fields_text(item), "📋", "✔️")
                for key, value in visible_fields(item):
                    st.caption(key)
                    st.write(value)

    frame = table_frame(result)
    if not frame.empty:
        st.markdown("#### 结构化表格")
        st.dataframe(frame, use_container_width=True, hide_index=True)


def main():
    app_cfg = AppConfig.load()
    store = get_store(app_cfg)
    s = get_state(store)

    render_header(s, store)
    app_cfg = render_agent_settings(app_cfg)
    render_history(s, store)

    col_form, col_results = st.columns([2, 3])
    with col_form:
        render_form(s)
    with col_results:
        render_results(s)

    if s.busy:
        with st.spinner("正在抓取并解析网页数据..."):
            app_state.run_extraction(
                s,
                store,
                agent_id=app_cfg.agent.agent_id,
                config=app_cfg.agent,
            )
        st.rerun()


if __name__ == "__main__":
    main()
