from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed, FileRequired

from wtforms import (
    StringField,
    PasswordField,
    BooleanField,
    SelectField,
    DateField,
    TextAreaField,
    IntegerField,
    SubmitField,
)

from wtforms.validators import (
    DataRequired,
    Optional,
    Email,
    Length,
    EqualTo,
    Regexp,
)

from kelasku.schemas import KasStatus, Priority
from kelasku.utils.roles import role_choices


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    remember = BooleanField('Ingat Saya')
    submit = SubmitField('Login')


class RegisterForm(FlaskForm):
    nama = StringField('Nama Lengkap', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[
        DataRequired(),
        Length(min=6, message="Password minimal 6 karakter")
    ])
    confirm_password = PasswordField('Konfirmasi Password', validators=[
        DataRequired(),
        EqualTo('password', message='Password tidak sama')
    ])
    tanggal_lahir = DateField('Tanggal Lahir', format='%Y-%m-%d', validators=[Optional()])
    submit = SubmitField('Daftar')


class ProfileForm(FlaskForm):
    nama = StringField('Nama Lengkap', validators=[DataRequired(), Length(max=100)])
    tanggal_lahir = DateField('Tanggal Lahir', format='%Y-%m-%d', validators=[Optional()])
    submit = SubmitField('Simpan')


# ==========================================
# FITUR KELAS
# ==========================================
class PRForm(FlaskForm):
    judul = StringField('Judul PR/Tugas', validators=[DataRequired(), Length(max=150)])
    isi = TextAreaField('Deskripsi', validators=[DataRequired()])
    priority = SelectField('Prioritas', choices=[
        (Priority.URGENT.value, 'Urgent'),
        (Priority.NORMAL.value, 'Normal'),
        (Priority.RINGAN.value, 'Ringan'),
    ], default=Priority.NORMAL.value)
    submit = SubmitField('Buat PR/Tugas')


class InfoForm(FlaskForm):
    judul = StringField('Judul Info', validators=[DataRequired(), Length(max=150)])
    isi = TextAreaField('Isi Info', validators=[DataRequired()])
    submit = SubmitField('Buat Info')


class ChatForm(FlaskForm):
    message = StringField('Pesan', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Kirim')


class TopicForm(FlaskForm):
    judul = StringField('Judul Topik', validators=[DataRequired(), Length(max=150)])
    submit = SubmitField('Buat Topik')


class ReplyForm(FlaskForm):
    pesan = TextAreaField('Balasan', validators=[DataRequired()])
    submit = SubmitField('Kirim Balasan')


class UcapanForm(FlaskForm):
    pesan = TextAreaField('Ucapan', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Kirim Ucapan')


class GameForm(FlaskForm):
    judul = StringField('Nama Game', validators=[DataRequired(), Length(max=100)])
    link = StringField('Link Game', validators=[DataRequired()])
    submit = SubmitField('Tambah Game')


class KasPaymentForm(FlaskForm):
    amount = IntegerField('Jumlah (Rp)', validators=[DataRequired(message='Masukkan jumlah yang valid')])
    status = SelectField('Status', choices=[
        (KasStatus.SUDAH.value, 'Sudah Bayar'),
        (KasStatus.BELUM.value, 'Belum Bayar'),
    ], default=KasStatus.SUDAH.value)
    submit = SubmitField('Simpan')


# ==========================================
# ADMIN
# ==========================================
class UserCreateForm(FlaskForm):
    nama = StringField('Nama Lengkap', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[
        DataRequired(),
        Length(min=6, message="Password minimal 6 karakter")
    ])
    kelas = StringField('Kelas', validators=[DataRequired()])
    tanggal_lahir = DateField('Tanggal Lahir', format='%Y-%m-%d', validators=[Optional()])
    role = SelectField('Role', choices=role_choices(), default='murid')
    is_admin = BooleanField('Akses Admin')
    submit = SubmitField('Buat User')


class UserEditForm(FlaskForm):
    nama = StringField('Nama Lengkap', validators=[DataRequired(), Length(max=100)])
    role = SelectField('Role', choices=role_choices())
    is_admin = BooleanField('Akses Admin')
    submit = SubmitField('Simpan Perubahan')


class UserImportForm(FlaskForm):
    file = FileField('File CSV / XLSX', validators=[
        FileRequired(),
        FileAllowed(['csv', 'xlsx'], 'Hanya file .csv atau .xlsx'),
    ])
    submit = SubmitField('Import')


class PengaturanForm(FlaskForm):
    nama_kelas = StringField('Nama Kelas', validators=[DataRequired(), Length(max=50)])
    warna_tema = StringField('Warna Tema', validators=[
        DataRequired(),
        Regexp(r'^#[0-9A-Fa-f]{6}$', message='Format warna harus #RRGGBB'),
    ])
    versi_aplikasi = StringField('Versi Aplikasi', validators=[DataRequired(), Length(max=20)])
    submit = SubmitField('Simpan Pengaturan')


def first_error(form):
    """Pesan error pertama dari form, untuk ditampilkan sebagai toast."""
    for field_name, messages in form.errors.items():
        if messages:
            label = getattr(form, field_name).label.text if hasattr(form, field_name) else field_name
            return f'{label}: {messages[0]}'
    return 'Data yang dikirim tidak valid.'
