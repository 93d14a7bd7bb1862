from django import forms
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password


class RegistrationForm(forms.Form):

    username = forms.CharField(
        max_length=150,
        error_messages={
            'required': 'Please enter a username.',
            'max_length': 'Username is too long.',
        },
    )
    email = forms.EmailField(
        error_messages={'required': 'Please enter an email address.'},
    )
    password = forms.CharField(strip=False)
    full_name = forms.CharField(max_length=100, required=False)
    phone = forms.CharField(max_length=20, required=False)

    def clean_username(self):
        username = self.cleaned_data.get('username', '').strip()

        if not username:
            raise forms.ValidationError('Please enter a username.')

        if User.objects.filter(username__iexact=username).exists():
            raise forms.ValidationError('This username is already taken.')

        return username

    def clean_email(self):
        email = self.cleaned_data.get('email', '').strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError('An account with this email already exists.')
        return email

    def clean_password(self):
        password = self.cleaned_data.get('password')
        validate_password(password)
        return password


class LoginForm(forms.Form):
    # Accepts either the username or the email address
    username = forms.CharField(max_length=254)
    password = forms.CharField(strip=False)
