"""
Configuration Service
Centralized configuration management for the application.
"""

import os
import streamlit as st
from typing import Optional


class ConfigService:
    """Service for managing application configuration."""

    # Storage Configuration
    TABLE_NAME: str = "user_data"

    # AI/API Configuration
    GEMINI_RETRY_ATTEMPTS: int = 2
    GEMINI_RETRY_DELAY_BASE: float = 0.8
    GEMINI_MODELS: list[str] = ['gemini-2.0-flash-exp', 'gemini-1.5-flash']
    GEMINI_TEMPERATURE: float = 0.1
    GEMINI_MAX_OUTPUT_TOKENS: int = 256

    # UI/Theme Configuration
    CHART_COLORS: list[str] = [
        "#2563EB", "#10B981", "#F59E0B", "#EF4444",
        "#A855F7", "#06B6D4"
    ]

    # Chart Layout Configuration
    CHART_PAPER_BG: str = 'rgba(0,0,0,0)'
    CHART_PLOT_BG: str = 'rgba(0,0,0,0)'
    CHART_FONT_COLOR: str = '#E5E7EB'
    CHART_GRID_COLOR: str = '#1F2937'
    CHART_TICK_COLOR: str = '#9CA3AF'
    CHART_LEGEND_COLOR: str = '#E5E7EB'

    # Query Configuration
    DEFAULT_TOP_LIMIT: int = 10  # "show top rows" without a number
    DEFAULT_SAMPLE_LIMIT: int = 20  # Questions no pattern understands

    # Display Configuration
    MAX_DISPLAY_ROWS: int = 100
    MAX_CHART_ROWS: int = 50  # Chart spec is only produced up to this size
    TOP_SHARE_GROUPS: int = 5

    # Upload Configuration
    SUPPORTED_EXTENSIONS: tuple[str, ...] = ('.csv', '.xlsx', '.xls')
    MAX_FILE_SIZE_MB: int = 200
    HEADER_SCAN_ROWS: int = 5
    UNNAMED_HEADER_RATIO: float = 0.3

    @classmethod
    def get_gemini_api_key(cls) -> Optional[str]:
        """Get Gemini API key from Streamlit secrets, then the environment."""
        try:
            key = st.secrets.get("GEMINI_API_KEY", None)
        except Exception:
            key = None
        return key or os.environ.get("GEMINI_API_KEY") or None

    @classmethod
    def use_gemini(cls) -> bool:
        """Check if Gemini is available and should be used."""
        return cls.get_gemini_api_key() is not None

    @classmethod
    def get_chart_layout(cls):
        """
        Get Plotly chart layout configuration.

        Returns:
            Plotly Layout with the dark theme settings
        """
        import plotly.graph_objects as go

        return go.Layout(
            paper_bgcolor=cls.CHART_PAPER_BG,
            plot_bgcolor=cls.CHART_PLOT_BG,
            font=dict(color=cls.CHART_FONT_COLOR),
            xaxis=dict(
                showgrid=True,
                gridcolor=cls.CHART_GRID_COLOR,
                tickfont=dict(color=cls.CHART_TICK_COLOR),
                title_font=dict(color=cls.CHART_FONT_COLOR)
            ),
            yaxis=dict(
                showgrid=True,
                gridcolor=cls.CHART_GRID_COLOR,
                tickfont=dict(color=cls.CHART_TICK_COLOR),
                title_font=dict(color=cls.CHART_FONT_COLOR)
            ),
            legend=dict(font=dict(color=cls.CHART_LEGEND_COLOR)),
            colorway=cls.CHART_COLORS,
        )


# Singleton instance
_config_service = ConfigService()

def get_config() -> ConfigService:
    """Get the configuration service instance."""
    return _config_service
