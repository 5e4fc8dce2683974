import streamlit as st
from datetime import datetime
from dataclasses import replace
from pathlib import Path
from base_types import GoalContext, Recommendation
from errors import ValidationError
from recovery_configs import load_settings, save_settings, safe_minimum_for, REFRAME_MESSAGES
from recovery_tracker import RecoveryTracker

PREFS_FILE = Path("recovery_preferences.json")

RECOMMENDATION_COLORS = {
    Recommendation.RECOMMENDED: 'green',
    Recommendation.NEUTRAL: 'blue',
    Recommendation.NOT_RECOMMENDED: 'red'
}


def persist_settings(settings) -> bool:
    """Save recovery preferences to file"""
    try:
        save_settings(settings, PREFS_FILE)
    except OSError as e:
        st.warning(f"Could not save preferences: {e}")
        return False
    return True


def initialize_session_state():
    """Initialize session state variables"""
    if 'goal_context' not in st.session_state:
        st.session_state.goal_context = GoalContext(
            weekly_deficit_target=3500,
            total_program_weeks=12,
            days_elapsed=0,
            workout_equivalent_calories=350,
            safe_minimum_calories=safe_minimum_for('female')
        )
    if 'tracker' not in st.session_state:
        st.session_state.tracker = RecoveryTracker(
            lambda: st.session_state.goal_context,
            settings=load_settings(PREFS_FILE)
        )


def show_settings_sidebar():
    """Display goal and detection settings"""
    tracker = st.session_state.tracker
    with st.sidebar:
        st.header("Goal Settings")
        weekly_deficit = st.number_input("Weekly Deficit (kcal)", 500, 10000, 3500, step=100)
        program_weeks = st.number_input("Program Length (weeks)", 1, 104, 12)
        days_elapsed = st.number_input("Days Elapsed", 0, 728, 0)
        workout_kcal = st.number_input("Calories per Workout", 50, 2000, 350, step=25)
        profile = st.radio("Safe Minimum Profile", options=['female', 'male'])

        st.session_state.goal_context = GoalContext(
            weekly_deficit_target=weekly_deficit,
            total_program_weeks=program_weeks,
            days_elapsed=days_elapsed,
            workout_equivalent_calories=workout_kcal,
            safe_minimum_calories=safe_minimum_for(profile)
        )

        st.header("Detection")
        settings = tracker.settings
        enabled = st.checkbox("Enable Recovery Mode", settings.enable_recovery_mode)
        min_excess = st.number_input("Tolerance (kcal)", 0, 2000, int(settings.severity.min_excess), step=50)
        moderate = st.number_input("Moderate From (kcal)", 0, 5000, int(settings.severity.moderate), step=50)
        severe = st.number_input("Severe From (kcal)", 0, 10000, int(settings.severity.severe), step=50)

        if st.button("Save Settings"):
            try:
                updated = replace(
                    settings,
                    enable_recovery_mode=enabled,
                    severity=replace(settings.severity, min_excess=min_excess,
                                     moderate=moderate, severe=severe)
                )
            except ValidationError as e:
                st.error(str(e))
            else:
                tracker.update_settings(updated)
                if persist_settings(updated):
                    st.success("Settings saved")


def show_daily_log_tab():
    """Display meal logging for a single day"""
    tracker = st.session_state.tracker
    st.header("Daily Log")

    log_date = st.date_input("Date", datetime.now(), key="log_date")

    col1, col2 = st.columns(2)
    with col1:
        target = st.number_input("Daily Target (kcal)", 800, 6000,
                                 int(tracker.meal_log.get_target(log_date)), step=50)
        if st.button("Set Target"):
            tracker.set_daily_target(log_date, target)
    with col2:
        name = st.text_input("Meal", "")
        calories = st.number_input("Calories", 0, 10000, 500, step=25)
        if st.button("Add Meal"):
            tracker.log_meal(log_date, calories, name or None)

    totals = tracker.meal_log.get_daily_totals(log_date)
    st.metric("Consumed", f"{totals.consumed:.0f} kcal",
              delta=f"{totals.consumed - totals.target:+.0f} vs target", delta_color="inverse")

    for meal in tracker.meal_log.get_meals(log_date):
        meal_col, delete_col = st.columns([4, 1])
        with meal_col:
            st.write(f"{meal.name or 'Meal'}: {meal.calories:.0f} kcal")
        with delete_col:
            if st.button("Delete", key=f"delete_{meal.meal_id}"):
                tracker.delete_meal(meal.meal_id)
                st.rerun()


def show_recovery_tab():
    """Display the active recovery plan, if any"""
    tracker = st.session_state.tracker
    st.header("Recovery")

    event = tracker.get_active_event(st.session_state.log_date)
    if event is None:
        st.info("No overeating event for this day.")
        return

    plan = tracker.get_recovery_plan(event)
    analysis = plan.impact_analysis
    st.subheader(REFRAME_MESSAGES[event.trigger_type].title)
    st.write(f"{event.excess_calories} calories over target ({event.trigger_type.value})")
    st.markdown(f"**{analysis.reframe.message}** {analysis.reframe.focus_point}")
    if analysis.reframe.success_reminder:
        st.success(analysis.reframe.success_reminder)

    cols = st.columns(4)
    cols[0].metric("Timeline Delay", f"{analysis.real_impact.timeline_delay_days} days")
    cols[1].metric("Weekly Deficit Used", f"{analysis.real_impact.weekly_goal_impact}%")
    cols[2].metric("Equivalent Workouts", analysis.perspective.equivalent_workouts)
    cols[3].metric("Days to Nullify", analysis.perspective.days_to_nullify)

    for option in plan.rebalancing_options:
        color = RECOMMENDATION_COLORS[option.recommendation]
        st.markdown(f"#### {option.name} :{color}[{option.recommendation.value}]")
        st.write(option.description)
        st.caption(f"Target {option.impact.new_daily_target} kcal · "
                   f"effort {option.impact.effort_level.value} · risk {option.impact.risk_level.value}")
        if st.button("Choose", key=f"option_{option.id}"):
            mutation = tracker.select_option(event, option.id)
            st.success(f"New daily target {mutation.new_daily_target} kcal from {mutation.applies_from}")

    if not event.acknowledged and st.button("Dismiss"):
        tracker.acknowledge(event)


def main():
    st.set_page_config(
        page_title="Overeating Recovery",
        page_icon="🎯",
        layout="wide"
    )

    st.title("Overeating Recovery")

    initialize_session_state()
    show_settings_sidebar()

    tab1, tab2 = st.tabs(["Daily Log", "Recovery"])

    with tab1:
        show_daily_log_tab()

    with tab2:
        show_recovery_tab()


if __name__ == "__main__":
    main()
