"""
Browser automation of job application forms.

Fills recognised form fields on the posting page and, when enabled, submits
the form. Failures are reported in the outcome rather than raised.
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Dict, List, Optional

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

from data_models import AutomationOutcome, PersonalInfo
from errors import AutomationError

LOGGER = logging.getLogger(__name__)

# Checked in order; "name" must come after first/last name.
FIELD_PATTERNS = [
    ("first_name", re.compile(r"first[\s_-]?name|given[\s_-]?name|prenom|fname", re.I)),
    ("last_name", re.compile(r"last[\s_-]?name|surname|family[\s_-]?name|lname", re.I)),
    ("email", re.compile(r"e-?mail", re.I)),
    ("phone", re.compile(r"phone|mobile|\btel\b|telephone", re.I)),
    ("cover_letter", re.compile(r"cover[\s_-]?letter|motivation|message", re.I)),
    ("full_name", re.compile(r"\bname\b|full[\s_-]?name", re.I)),
]
FIELD_ATTRIBUTES = ("name", "id", "placeholder", "aria-label", "autocomplete")


def classify_field(attributes: Dict[str, Optional[str]]) -> Optional[str]:
    """
    Decide which applicant value a form control expects.

    Args:
        attributes: HTML attributes of the control (name, id, placeholder, ...).

    Returns:
        Field key such as "email" or "cover_letter", or None if unrecognised.
    """
    haystack = " ".join(value for value in attributes.values() if value)
    if not haystack:
        return None
    for key, pattern in FIELD_PATTERNS:
        if pattern.search(haystack):
            return key
    return None


def field_values(personal_info: PersonalInfo, cover_letter: str) -> Dict[str, str]:
    return {
        "first_name": personal_info.first_name,
        "last_name": personal_info.last_name,
        "full_name": personal_info.full_name,
        "email": personal_info.email,
        "phone": personal_info.phone,
        "cover_letter": cover_letter,
    }


class ApplicationAutomator:
    """Fills in an application form with headless Chrome."""

    def __init__(self, renderer, submit: bool = False) -> None:
        """
        Args:
            renderer: SeleniumPageRenderer whose driver configuration is reused.
            submit: Click the submit button after filling the form.
        """
        self._renderer = renderer
        self._submit = submit

    def _fill_form(self, driver: webdriver.Chrome, values: Dict[str, str], cv_path: Path) -> List[str]:
        filled: List[str] = []
        for element in driver.find_elements(By.CSS_SELECTOR, "input, textarea"):
            input_type = (element.get_attribute("type") or "text").lower()
            if input_type == "file":
                if "cv" not in filled and cv_path.exists():
                    element.send_keys(str(cv_path.resolve()))
                    filled.append("cv")
                continue
            if input_type in {"hidden", "submit", "button", "checkbox", "radio"}:
                continue
            if not element.is_displayed():
                continue

            key = classify_field({attr: element.get_attribute(attr) for attr in FIELD_ATTRIBUTES})
            if element.tag_name == "textarea" and key is None:
                key = "cover_letter"
            if not key or key in filled or not values.get(key):
                continue
            element.clear()
            element.send_keys(values[key])
            filled.append(key)
        return filled

    def automate(
        self, url: str, cover_letter: str, cv_path: Path, personal_info: PersonalInfo
    ) -> AutomationOutcome:
        """
        Open the posting and fill in the application form.

        Args:
            url: Job posting URL.
            cover_letter: Letter body for the cover letter / message field.
            cv_path: CV file to upload.
            personal_info: Applicant contact details.

        Returns:
            AutomationOutcome; status is "failed" if anything went wrong.
        """
        driver = None
        try:
            driver = self._renderer.create_driver()
            driver.get(url)
            time.sleep(self._renderer.settle_seconds)

            filled = self._fill_form(driver, field_values(personal_info, cover_letter), Path(cv_path))
            if not filled:
                raise AutomationError("No application form fields found")
            LOGGER.info("Filled application fields on %s: %s", url, ", ".join(filled))

            submitted = False
            if self._submit:
                buttons = driver.find_elements(
                    By.CSS_SELECTOR, "button[type='submit'], input[type='submit']"
                )
                if not buttons:
                    raise AutomationError("No submit button found")
                buttons[0].click()
                time.sleep(self._renderer.settle_seconds)
                submitted = True
                LOGGER.info("Submitted application on %s", url)
            return AutomationOutcome(status="completed", fields_filled=filled, submitted=submitted)
        except (AutomationError, WebDriverException) as exc:
            LOGGER.error("Application automation failed for %s: %s", url, exc)
            return AutomationOutcome(status="failed", error=str(exc))
        finally:
            if driver:
                try:
                    driver.quit()
                except WebDriverException:
                    LOGGER.debug("Chrome WebDriver did not quit cleanly")
