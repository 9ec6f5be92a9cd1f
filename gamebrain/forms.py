from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField, SubmitField
from wtforms.validators import DataRequired, Email, Length, EqualTo, Regexp


class RegistrationForm(FlaskForm):
    username = StringField('Username', validators=[
        DataRequired(message='Choose a username'),
        Length(min=3, max=30, message='Between 3 and 30 characters'),
        Regexp(r'^[\w.-]+$', message='Letters, digits, dots, dashes and underscores only'),
    ])
    email = StringField('Email', validators=[DataRequired(message='Enter your email'), Email(message='Enter a valid email address')])
    password = PasswordField('Password', validators=[DataRequired(message='Enter a password'), Length(min=6, message='At least 6 characters')])
    confirm_password = PasswordField('Confirm password', validators=[DataRequired(message='Confirm your password'), EqualTo('password', message='Passwords do not match')])
    submit = SubmitField('Create account')


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Enter your email'), Email(message='Enter a valid email address')])
    password = PasswordField('Password', validators=[DataRequired(message='Enter your password')])
    remember_id = BooleanField('Remember my email')
    submit = SubmitField('Sign in')
