import enum

from kelasku.schemas import UserRole
from kelasku.utils.roles import parse_role


class Capability(enum.Enum):
    CREATE_PR = "create_pr"
    DELETE_PR = "delete_pr"
    CREATE_INFO = "create_info"
    PIN_INFO = "pin_info"
    DELETE_INFO = "delete_info"
    EDIT_PELAJARAN = "edit_pelajaran"
    EDIT_PIKET = "edit_piket"
    EDIT_KAS = "edit_kas"
    MANAGE_GAMES = "manage_games"
    PIN_DISKUSI = "pin_diskusi"
    MANAGE_USERS = "manage_users"


# Role pengurus yang boleh melakukan tiap aksi.
# isAdmin selalu boleh; role 'admin' boleh semua kecuali MANAGE_USERS.
CAPABILITY_ROLES = {
    Capability.CREATE_PR: {UserRole.KETUA_KELAS, UserRole.WAKIL_KETUA, UserRole.SEKRETARIS},
    Capability.DELETE_PR: {UserRole.KETUA_KELAS},
    Capability.CREATE_INFO: {UserRole.KETUA_KELAS, UserRole.WAKIL_KETUA, UserRole.SEKRETARIS},
    Capability.PIN_INFO: {UserRole.KETUA_KELAS, UserRole.WAKIL_KETUA},
    Capability.DELETE_INFO: {UserRole.KETUA_KELAS},
    Capability.EDIT_PELAJARAN: {UserRole.WAKIL_KETUA, UserRole.KETUA_KELAS},
    Capability.EDIT_PIKET: {UserRole.SEKSI_KEBERSIHAN, UserRole.KETUA_KELAS},
    Capability.EDIT_KAS: {UserRole.BENDAHARA, UserRole.KETUA_KELAS},
    Capability.MANAGE_GAMES: {UserRole.KETUA_KELAS},
    Capability.PIN_DISKUSI: {UserRole.KETUA_KELAS, UserRole.WAKIL_KETUA},
    Capability.MANAGE_USERS: set(),
}

ADMIN_ROLE_EXCLUDED = {Capability.MANAGE_USERS}


def parse_capability(raw):
    if isinstance(raw, Capability):
        return raw
    try:
        return Capability(str(raw).strip().lower())
    except ValueError:
        return None


def has_capability(role, is_admin, capability):
    capability = parse_capability(capability)
    if capability is None:
        return False

    if is_admin:
        return True

    role = parse_role(role)
    if role is None:
        return False

    if role == UserRole.ADMIN:
        return capability not in ADMIN_ROLE_EXCLUDED

    return role in CAPABILITY_ROLES[capability]


def user_can(user, capability):
    if user is None:
        return False
    return has_capability(user.role, user.is_admin, capability)
