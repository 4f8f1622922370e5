"""Page objects for the Lumina web app."""

from lumina_e2e.pages.course import CoursePage
from lumina_e2e.pages.degrees import DegreesPage
from lumina_e2e.pages.learning_journey import LearningJourneyPage
from lumina_e2e.pages.login import LoginPage
from lumina_e2e.pages.my_journey import MyJourneyPage
from lumina_e2e.pages.onboarding import OnboardingPage
from lumina_e2e.pages.question import QuestionPage
from lumina_e2e.pages.settings import SettingsPage
from lumina_e2e.pages.sidebar import Sidebar

__all__ = [
    "CoursePage",
    "DegreesPage",
    "LearningJourneyPage",
    "LoginPage",
    "MyJourneyPage",
    "OnboardingPage",
    "QuestionPage",
    "SettingsPage",
    "Sidebar",
]
