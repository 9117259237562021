from .step_00_welcome import WelcomeStep
from .step_10_homebrew import HomebrewStep
from .step_20_app_selection import AppSelectionStep
from .step_30_language_selection import LanguageSelectionStep
from .step_40_app_installation import AppInstallationStep
from .step_50_mise_setup import MiseSetupStep
from .step_60_git_setup import GitSetupStep
from .step_70_github_setup import GitHubSetupStep
from .step_90_complete import CompleteStep

__all__ = [
    "WelcomeStep",
    "HomebrewStep",
    "AppSelectionStep",
    "LanguageSelectionStep",
    "AppInstallationStep",
    "MiseSetupStep",
    "GitSetupStep",
    "GitHubSetupStep",
    "CompleteStep",
]
