import os
import platform
import logging
import stat

logger = logging.getLogger(__name__)

if platform.system() == "Windows":
    try:
        import win32api
        import win32con
        import win32security
        WINDOWS_SECURITY_AVAILABLE = True
    except ImportError:
        logger.warning("pywin32 not fully installed, cannot set Windows file permissions securely.")
        WINDOWS_SECURITY_AVAILABLE = False
else:
    WINDOWS_SECURITY_AVAILABLE = False


def set_owner_only_permissions(filepath: str) -> bool:
    """
    Restrict a file to read/write access by its owner.

    Returns:
        True if the permissions were applied.
    """
    if platform.system() == "Windows":
        return _set_windows_file_permissions(filepath)
    return _set_posix_file_permissions(filepath)


def _set_posix_file_permissions(filepath: str) -> bool:
    try:
        os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600
    except OSError as e:
        logger.warning(f"Could not chmod {filepath}: {e}")
        return False
    return True


def _current_user_sid():
    token = win32security.OpenProcessToken(win32api.GetCurrentProcess(), win32security.TOKEN_QUERY)
    try:
        sid, _ = win32security.GetTokenInformation(token, win32security.TokenUser)
    finally:
        win32api.CloseHandle(token)
    return sid


def _set_windows_file_permissions(filepath: str) -> bool:
    """
    Replace the file's DACL with a single entry for the current user.

    Inherited entries are dropped, so no other account keeps access.
    """
    if not WINDOWS_SECURITY_AVAILABLE:
        logger.warning(f"Skipping Windows file permission setting for {filepath}: pywin32 not available.")
        return False

    try:
        dacl = win32security.ACL()
        dacl.AddAccessAllowedAce(
            win32security.ACL_REVISION,
            win32con.GENERIC_READ | win32con.GENERIC_WRITE,
            _current_user_sid(),
        )
        win32security.SetNamedSecurityInfo(
            filepath,
            win32security.SE_FILE_OBJECT,
            win32security.DACL_SECURITY_INFORMATION | win32security.PROTECTED_DACL_SECURITY_INFORMATION,
            None,
            None,
            dacl,
            None,
        )
    except win32api.error as e:
        if e.winerror == 5:  # Access is denied
            logger.warning(f"Could not harden Windows permissions for {filepath}: access is denied.")
        else:
            logger.error(f"Failed to set Windows file permissions for {filepath}: {e}")
        return False
    logger.debug(f"Set owner-only permissions for {filepath} on Windows.")
    return True
