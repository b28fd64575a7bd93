"""
Form validation for the community platform.

Each form carries the user-facing messages shown when input is rejected.
The lifecycle manager and transitions validate with these forms before
touching the database or the blob store.
"""

from decimal import Decimal

from django import forms
from django.core.validators import DecimalValidator, RegexValidator

from .media import validate_image_upload
from .models import SITE_ROLE_CHOICES, ListingCategory, ThreadCategory, ThreadSort


VALID_CURRENCY_REGEX = r"^(\d*)(\.\d{1,2})?$"


def _length_messages(message):
    return {"required": message, "max_length": message, "min_length": message}


def _image_field(required=True, message="You must upload an image."):
    return forms.ImageField(
        required=required,
        validators=[validate_image_upload],
        error_messages={
            "required": message,
            "invalid_image": "Your image could not be read. Upload a valid image file.",
        },
    )


# ============================================================================
# ACCOUNTS
# ============================================================================

class RegistrationForm(forms.Form):
    full_name = forms.CharField(
        max_length=100,
        strip=True,
        error_messages=_length_messages("Your full name must be from 1-100 characters long."),
    )
    email = forms.EmailField(
        max_length=255,
        error_messages={
            "required": "Your email must be from 1-255 characters long.",
            "max_length": "Your email must be from 1-255 characters long.",
            "invalid": "Your email must be in the form xxx@...sfsu.edu.",
        },
    )
    sfsu_id_number = forms.IntegerField(
        min_value=100000000,
        max_value=999999999,
        error_messages={
            "required": "You must provide an SFSU ID number.",
            "invalid": "Your SFSU ID number must be an integer.",
            "min_value": "Your SFSU ID number must be exactly 9 digits long, and cannot start with 0.",
            "max_value": "Your SFSU ID number must be exactly 9 digits long, and cannot start with 0.",
        },
    )
    password = forms.CharField(
        min_length=6,
        max_length=64,
        strip=False,
        error_messages=_length_messages("Your password must be from 6-64 characters long."),
    )
    sfsu_id_picture = _image_field(message="You must upload a picture of your SFSU ID card.")

    def clean_full_name(self):
        full_name = self.cleaned_data["full_name"]
        if " " not in full_name:
            raise forms.ValidationError("Your full name must include a last name separated by a space.")
        return full_name

    def clean_email(self):
        email = self.cleaned_data["email"].lower()
        if not email.endswith("sfsu.edu"):
            raise forms.ValidationError("Your email must be an SFSU email.")
        return email


class PasswordResetForm(forms.Form):
    new_password = forms.CharField(
        max_length=64,
        strip=False,
        error_messages=_length_messages("The new password must be from 1-64 characters long."),
    )


class ProfilePictureForm(forms.Form):
    picture = _image_field(message="You must upload a profile picture.")


# ============================================================================
# GROUPS
# ============================================================================

class GroupForm(forms.Form):
    name = forms.CharField(
        max_length=255,
        error_messages=_length_messages("Your group name must be from 1-255 characters long."),
    )
    description = forms.CharField(
        max_length=5000,
        required=False,
        error_messages={"max_length": "Your group description must be at most 5000 characters long."},
    )
    picture = _image_field(message="You must upload a group picture.")


class AnnouncementForm(forms.Form):
    announcement = forms.CharField(
        max_length=5000,
        required=False,
        error_messages={"max_length": "Your announcement must be at most 5000 characters long."},
    )


class MessageForm(forms.Form):
    body = forms.CharField(
        max_length=5000,
        error_messages=_length_messages("Your message must be from 1-5000 characters long."),
    )


# ============================================================================
# MARKETPLACE & FORUMS
# ============================================================================

class ListingForm(forms.Form):
    title = forms.CharField(
        max_length=255,
        error_messages=_length_messages("Your title must be from 1-255 characters long."),
    )
    description = forms.CharField(
        max_length=2500,
        error_messages=_length_messages("Your description must be from 1-2500 characters long."),
    )
    price = forms.CharField(
        max_length=8,
        validators=[RegexValidator(
            VALID_CURRENCY_REGEX,
            "You must enter a non-negative price with at most 2 decimal places, e.g. 9.99.",
        )],
        error_messages=_length_messages("Your price must be from 1-8 characters long."),
    )
    category = forms.ChoiceField(
        choices=ListingCategory.choices,
        error_messages={
            "required": "You must choose a category for your listing.",
            "invalid_choice": "Your listing category must be one of those in the dropdown.",
        },
    )
    image = _image_field(message="You must upload a photo of your item.")

    def clean_price(self):
        price = Decimal(self.cleaned_data["price"])
        DecimalValidator(max_digits=8, decimal_places=2)(price)
        return price


class ThreadForm(forms.Form):
    title = forms.CharField(
        max_length=255,
        error_messages=_length_messages("Your title must be from 1-255 characters long."),
    )
    body = forms.CharField(
        max_length=10000,
        error_messages=_length_messages("Your post must be from 1-10000 characters long."),
    )
    category = forms.ChoiceField(
        choices=ThreadCategory.choices,
        error_messages={
            "required": "You must choose a category for your thread.",
            "invalid_choice": "Your thread category must be one of those in the dropdown.",
        },
    )
    group_id = forms.IntegerField(required=False)
    image = _image_field(required=False)


class PostForm(forms.Form):
    thread_id = forms.IntegerField(
        error_messages={
            "required": "You must choose a thread to post in.",
            "invalid": "The thread id must be an integer.",
        },
    )
    body = forms.CharField(
        max_length=10000,
        error_messages=_length_messages("Your post must be from 1-10000 characters long."),
    )


# ============================================================================
# SEARCH
# ============================================================================

class UserSearchForm(forms.Form):
    search_terms = forms.CharField(max_length=255, required=False)
    role = forms.TypedChoiceField(
        choices=SITE_ROLE_CHOICES,
        coerce=int,
        required=False,
        empty_value=None,
        error_messages={"invalid_choice": "Your role filter must be one of those in the dropdown."},
    )


class ListingSearchForm(forms.Form):
    search_terms = forms.CharField(max_length=255, required=False)
    category = forms.ChoiceField(
        choices=ListingCategory.choices,
        required=False,
        error_messages={"invalid_choice": "Your listing filter category must be one of those in the dropdown."},
    )
    max_price = forms.CharField(
        max_length=8,
        required=False,
        validators=[RegexValidator(
            VALID_CURRENCY_REGEX,
            "You must enter a non-negative price with at most 2 decimal places, e.g. 9.99.",
        )],
    )

    def clean_max_price(self):
        max_price = self.cleaned_data["max_price"]
        return Decimal(max_price) if max_price else None


class ThreadSearchForm(forms.Form):
    search_terms = forms.CharField(max_length=255, required=False)
    category = forms.ChoiceField(
        choices=ThreadCategory.choices,
        required=False,
        error_messages={"invalid_choice": "Your thread filter category must be one of those in the dropdown."},
    )
    group_id = forms.IntegerField(required=False)
    sort = forms.ChoiceField(
        choices=ThreadSort.choices,
        required=False,
        error_messages={"invalid_choice": "Your sort option must be one of those in the dropdown."},
    )
