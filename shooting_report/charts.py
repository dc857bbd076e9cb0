"""Chart builders for the incident report

Every function takes a summary table and returns a plotly Figure.
"""

import pandas as pd
import plotly.graph_objects as go
from typing import Optional


COLORS = {
    'primary': '#1f3b73',      # NYC navy
    'secondary': '#2f5fa7',
    'actual': '#1f3b73',
    'fitted': '#d97706',
    'forecast': '#dc2626',
    'interval': 'rgba(220, 38, 38, 0.15)',
    'murders': '#7f1d1d',
    'gray': '#666666',
    'light_gray': '#cccccc'
}

# Same colour for a borough in every chart
BOROUGH_COLORS = {
    'Bronx': '#1b9e77',
    'Brooklyn': '#d95f02',
    'Manhattan': '#7570b3',
    'Queens': '#e7298a',
    'Staten Island': '#66a61e',
}

LAYOUT_DEFAULTS = {
    'template': 'plotly_white',
    'font': {'family': 'Arial, sans-serif'},
    'height': 420,
    'margin': {'l': 60, 'r': 30, 't': 60, 'b': 50},
    'legend': {'orientation': 'h', 'yanchor': 'bottom', 'y': 1.02, 'xanchor': 'center', 'x': 0.5},
}


def _borough_color(borough: str) -> str:
    return BOROUGH_COLORS.get(borough, COLORS['gray'])


def _apply_layout(fig: go.Figure, title: str, **kwargs) -> go.Figure:
    layout = dict(LAYOUT_DEFAULTS)
    layout.update(kwargs)
    fig.update_layout(title={'text': f'<b>{title}</b>', 'x': 0.02}, **layout)
    return fig


def monthly_trend_chart(df_monthly: pd.DataFrame) -> go.Figure:
    """Monthly incident counts for all of NYC, with murders when available"""
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=df_monthly['date'],
        y=df_monthly['incidents'],
        mode='lines',
        name='Incidents',
        line={'color': COLORS['actual'], 'width': 2},
        hovertemplate='<b>%{x|%b %Y}</b><br>Incidents: %{y:,}<extra></extra>'
    ))

    if 'murders' in df_monthly.columns:
        fig.add_trace(go.Scatter(
            x=df_monthly['date'],
            y=df_monthly['murders'],
            mode='lines',
            name='Murders',
            line={'color': COLORS['murders'], 'width': 1.5, 'dash': 'dot'},
            hovertemplate='<b>%{x|%b %Y}</b><br>Murders: %{y:,}<extra></extra>'
        ))

    fig.update_xaxes(tickformat='%Y')
    fig.update_yaxes(title_text='Incidents per month', tickformat=',.0f')

    return _apply_layout(fig, 'Shooting incidents per month')


def yearly_borough_chart(df_yearly_by_borough: pd.DataFrame) -> go.Figure:
    """Grouped bars of yearly incidents per borough"""
    fig = go.Figure()

    for borough, group in df_yearly_by_borough.groupby('borough'):
        fig.add_trace(go.Bar(
            x=group['year'],
            y=group['incidents'],
            name=borough,
            marker_color=_borough_color(borough),
            hovertemplate=f'<b>{borough}</b><br>%{{x}}: %{{y:,}}<extra></extra>'
        ))

    fig.update_xaxes(title_text='Year', dtick=1)
    fig.update_yaxes(title_text='Incidents', tickformat=',.0f')

    return _apply_layout(fig, 'Incidents per year by borough', barmode='group')


def monthly_borough_chart(df_monthly_by_borough: pd.DataFrame) -> go.Figure:
    """Monthly incident counts per borough"""
    fig = go.Figure()

    for borough, group in df_monthly_by_borough.groupby('borough'):
        fig.add_trace(go.Scatter(
            x=group['date'],
            y=group['incidents'],
            mode='lines',
            name=borough,
            line={'color': _borough_color(borough), 'width': 1.5},
            hovertemplate=f'<b>{borough}</b><br>%{{x|%b %Y}}: %{{y:,}}<extra></extra>'
        ))

    fig.update_xaxes(tickformat='%Y')
    fig.update_yaxes(title_text='Incidents per month', tickformat=',.0f')

    return _apply_layout(fig, 'Incidents per month by borough')


def hourly_borough_chart(df_hourly_by_borough: pd.DataFrame) -> go.Figure:
    """Incidents by hour of day per borough"""
    fig = go.Figure()

    for borough, group in df_hourly_by_borough.groupby('borough'):
        fig.add_trace(go.Scatter(
            x=group['hour'],
            y=group['incidents'],
            mode='lines+markers',
            name=borough,
            line={'color': _borough_color(borough), 'width': 2},
            marker={'size': 5},
            hovertemplate=f'<b>{borough}</b><br>%{{x}}:00 - %{{y:,}}<extra></extra>'
        ))

    fig.update_xaxes(title_text='Hour of day', dtick=2, range=[-0.5, 23.5])
    fig.update_yaxes(title_text='Incidents', tickformat=',.0f')

    return _apply_layout(fig, 'Incidents by hour of day')


def month_of_year_chart(df_month_of_year: pd.DataFrame) -> go.Figure:
    """Incidents by calendar month (all years pooled) per borough"""
    fig = go.Figure()

    for borough, group in df_month_of_year.groupby('borough'):
        group = group.sort_values('month')
        fig.add_trace(go.Bar(
            x=group['month_name'],
            y=group['incidents'],
            name=borough,
            marker_color=_borough_color(borough),
            hovertemplate=f'<b>{borough}</b><br>%{{x}}: %{{y:,}}<extra></extra>'
        ))

    fig.update_yaxes(title_text='Incidents', tickformat=',.0f')

    return _apply_layout(fig, 'Incidents by month of year', barmode='stack')


def borough_share_chart(df_borough_totals: pd.DataFrame) -> go.Figure:
    """Total incidents per borough"""
    df = df_borough_totals.sort_values('incidents')

    fig = go.Figure(go.Bar(
        x=df['incidents'],
        y=df['borough'],
        orientation='h',
        marker_color=[_borough_color(b) for b in df['borough']],
        text=[f'{share:.1f}%' for share in df['share_pct']],
        textposition='outside',
        hovertemplate='<b>%{y}</b><br>Incidents: %{x:,}<extra></extra>',
        showlegend=False
    ))

    fig.update_xaxes(title_text='Incidents', tickformat=',.0f')

    return _apply_layout(fig, 'Incidents by borough', height=360)


def regression_fit_chart(df_fitted: pd.DataFrame, response: str = 'incidents', title: Optional[str] = None) -> go.Figure:
    """Observed monthly values against the regression fit"""
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=df_fitted['date'],
        y=df_fitted[response],
        mode='markers',
        name='Observed',
        marker={'color': COLORS['actual'], 'size': 5},
        hovertemplate='<b>%{x|%b %Y}</b><br>Observed: %{y:,.0f}<extra></extra>'
    ))

    fig.add_trace(go.Scatter(
        x=df_fitted['date'],
        y=df_fitted['fitted'],
        mode='lines',
        name='Fitted',
        line={'color': COLORS['fitted'], 'width': 2},
        hovertemplate='<b>%{x|%b %Y}</b><br>Fitted: %{y:,.1f}<extra></extra>'
    ))

    fig.update_xaxes(tickformat='%Y')
    fig.update_yaxes(title_text=response.replace('_', ' ').capitalize(), tickformat=',.0f')

    return _apply_layout(fig, title or 'Linear regression fit')


def forecast_chart(df_forecast: pd.DataFrame, series: str = 'All', history_months: Optional[int] = 60) -> go.Figure:
    """
    Actuals, forecast and confidence band for one series

    Args:
        df_forecast: Long forecast table (date, series, value, lower, upper, source, model)
        series: Series to plot
        history_months: Months of actuals to show before the forecast (None = all)
    """
    df = df_forecast[df_forecast['series'] == series].sort_values('date')
    actuals = df[df['source'] == 'actual']
    forecasts = df[df['source'] == 'forecast']

    if history_months is not None:
        actuals = actuals.tail(history_months)

    model_name = forecasts['model'].iloc[0] if len(forecasts) > 0 else 'N/A'

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=actuals['date'],
        y=actuals['value'],
        mode='lines+markers',
        name='Actual',
        line={'color': COLORS['actual'], 'width': 2},
        marker={'size': 4},
        hovertemplate='<b>%{x|%b %Y}</b><br>Actual: %{y:,.0f}<extra></extra>'
    ))

    if len(forecasts) > 0:
        fig.add_trace(go.Scatter(
            x=pd.concat([forecasts['date'], forecasts['date'][::-1]]),
            y=pd.concat([forecasts['upper'], forecasts['lower'][::-1]]),
            fill='toself',
            fillcolor=COLORS['interval'],
            line={'color': 'rgba(0,0,0,0)'},
            hoverinfo='skip',
            name='Confidence interval'
        ))

        # Connect forecast to last actual
        if len(actuals) > 0:
            connected = pd.concat([actuals[['date', 'value']].tail(1), forecasts[['date', 'value']]])
        else:
            connected = forecasts[['date', 'value']]

        fig.add_trace(go.Scatter(
            x=connected['date'],
            y=connected['value'],
            mode='lines+markers',
            name=f'Forecast ({model_name})',
            line={'color': COLORS['forecast'], 'width': 2, 'dash': 'dash'},
            marker={'size': 5},
            hovertemplate='<b>%{x|%b %Y}</b><br>Forecast: %{y:,.0f}<extra></extra>'
        ))

    fig.update_xaxes(tickformat='%b %Y')
    fig.update_yaxes(title_text='Incidents per month', tickformat=',.0f')

    title = 'Incident forecast' if series == 'All' else f'Incident forecast: {series}'
    return _apply_layout(fig, title)


def model_eval_chart(df_eval: pd.DataFrame) -> go.Figure:
    """Holdout MAPE per model"""
    df = df_eval[df_eval['mape'].notna()].sort_values('mape')

    fig = go.Figure(go.Bar(
        x=df['label'],
        y=df['mape'],
        marker_color=[COLORS['forecast'] if best else COLORS['secondary'] for best in df['is_best']],
        text=[f'{m:.1f}%' for m in df['mape']],
        textposition='outside',
        hovertemplate='<b>%{x}</b><br>MAPE: %{y:.2f}%<extra></extra>',
        showlegend=False
    ))

    fig.update_yaxes(title_text='Holdout MAPE (%)')

    return _apply_layout(fig, 'Forecast model comparison', height=360)
