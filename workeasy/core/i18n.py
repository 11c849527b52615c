"""
Localized messages for API responses and page redirects.

Catalogs are nested dicts keyed by dotted paths. A missing key falls back
to the default locale and then to the key itself, so raw upstream messages
can flow through ``t`` unchanged.
"""

from collections.abc import Callable
from typing import Any

from starlette.requests import Request

from .config import settings

LOCALES: tuple[str, ...] = ("en", "ko", "ja")
DEFAULT_LOCALE: str = settings.DEFAULT_LOCALE

LOCALE_NAMES: dict[str, str] = {
    "en": "English",
    "ko": "한국어",
    "ja": "日本語",
}

MESSAGES: dict[str, dict[str, Any]] = {
    "ko": {
        "errors": {
            "authRequired": "인증이 필요합니다.",
            "insufficientPermissions": "권한이 부족합니다.",
            "adminRequired": "관리자 권한이 필요합니다.",
            "masterRequired": "마스터 권한이 필요합니다.",
            "invalidData": "입력 데이터가 올바르지 않습니다.",
            "internal": "서버 오류가 발생했습니다.",
            "notFound": "요청한 항목을 찾을 수 없습니다.",
            "duplicate": "이미 존재하는 항목입니다.",
            "storeIdRequired": "store_id가 필요합니다.",
            "idRequired": "id가 필요합니다.",
            "workItemIdRequired": "work_item_id가 필요합니다.",
            "bodyMustBeArray": "요청 본문은 배열이어야 합니다.",
            "storeNotFound": "매장을 찾을 수 없습니다.",
            "notStoreOwner": "매장 소유자만 수행할 수 있습니다.",
            "userNotFound": "사용자를 찾을 수 없습니다.",
            "roleNotFound": "사용자 역할을 찾을 수 없습니다.",
            "storeUserNotFound": "매장 사용자를 찾을 수 없습니다.",
            "alreadyInactive": "이미 비활성화된 사용자입니다.",
            "alreadyActive": "이미 활성화된 사용자입니다.",
            "notSubManager": "활성 상태의 서브 매니저만 강등할 수 있습니다.",
            "cannotDeleteSelf": "자기 자신은 삭제할 수 없습니다.",
            "cannotDeleteMaster": "마스터 사용자는 삭제할 수 없습니다.",
            "alreadyDeleted": "이미 삭제된 사용자입니다.",
            "guestFieldsRequired": "게스트 등록에는 이름, 매장, 역할이 필요합니다.",
            "emailFieldsRequired": "초대에는 이메일, 매장, 역할이 필요합니다.",
            "guestExists": "같은 이름의 게스트가 이미 존재합니다.",
            "invitationNotFound": "초대를 찾을 수 없습니다.",
            "invitationInvalid": "유효하지 않은 초대입니다.",
            "invitationExpired": "만료된 초대입니다.",
            "invitationNotPending": "대기 중인 초대만 처리할 수 있습니다.",
            "invitationEmailFailed": "초대 이메일 발송에 실패했습니다.",
            "jobRoleInUse": "사용 중인 직무 역할은 삭제할 수 없습니다.",
            "unavailableOnDate": "해당 날짜에 출근 불가로 등록된 사용자입니다.",
            "assignedOnDate": "해당 날짜에 이미 배정이 있어 출근 불가로 등록할 수 없습니다.",
            "invalidStoreUser": "매장에 속한 사용자를 찾을 수 없습니다.",
            "endAfterStart": "종료 시간은 시작 시간보다 늦어야 합니다.",
            "breakTooLong": "휴게 시간이 근무 시간보다 깁니다.",
            "minExceedsMax": "최소 인원은 최대 인원보다 클 수 없습니다.",
            "refreshTokenMissing": "리프레시 토큰이 없습니다.",
            "refreshFailed": "세션을 갱신하지 못했습니다.",
            "storeAccessDenied": "매장 접근 권한이 없습니다.",
            "cannotChangeRole": "이 사용자의 역할을 변경할 수 없습니다.",
            "startDateInPast": "시작일은 오늘 이후여야 합니다.",
            "startBeforeEnd": "시작일은 종료일보다 이전이어야 합니다.",
            "invalidDateRange": "시작일이 종료일보다 늦을 수 없습니다.",
            "profileUpdateFailed": "프로필 업데이트에 실패했습니다.",
            "temporaryAssignFailed": "임시 근무 배치에 실패했습니다.",
        },
        "validation": {
            "email": "올바른 이메일 주소를 입력하세요.",
            "passwordRequired": "비밀번호를 입력하세요.",
            "passwordMin8": "비밀번호는 8자 이상이어야 합니다.",
            "passwordMin6": "비밀번호는 6자 이상이어야 합니다.",
            "passwordLetterDigit": "비밀번호는 영문자와 숫자를 모두 포함해야 합니다.",
            "passwordMismatch": "비밀번호가 일치하지 않습니다.",
            "closeEqualsOpen": "마감 시간은 오픈 시간과 달라야 합니다.",
            "invalidDate": "날짜는 YYYY-MM-DD 형식이어야 합니다.",
            "invalidTime": "시간은 HH:mm 형식이어야 합니다.",
            "jobRoleRequired": "최소 하나의 직무 역할을 선택하세요.",
        },
        "auth": {
            "login": {
                "successDescription": "로그인되었습니다.",
                "error": {
                    "general": "로그인 중 오류가 발생했습니다.",
                    "invalidCredentials": "이메일 또는 비밀번호가 올바르지 않습니다.",
                    "emailNotConfirmed": "이메일 인증이 완료되지 않았습니다.",
                    "tooManyRequests": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
                    "userNotFound": "등록되지 않은 사용자입니다.",
                },
            },
            "signup": {
                "success": "회원가입이 완료되었습니다.",
                "checkEmail": "인증 메일을 확인해 주세요.",
                "error": {
                    "general": "회원가입 중 오류가 발생했습니다.",
                    "emailExists": "이미 등록된 이메일입니다.",
                    "weakPassword": "비밀번호가 보안 요구 사항을 충족하지 않습니다.",
                    "invalidEmail": "유효하지 않은 이메일 주소입니다.",
                    "disabled": "현재 회원가입이 비활성화되어 있습니다.",
                },
            },
            "logout": {"success": "로그아웃되었습니다."},
            "refresh": {"success": "세션이 갱신되었습니다."},
            "updateRole": {"success": "사용자 역할이 업데이트되었습니다."},
            "promoteToMaster": {
                "success": "마스터로 승격되었습니다.",
                "already": "이미 마스터입니다.",
            },
            "changePassword": {
                "success": "비밀번호가 변경되었습니다.",
                "error": {
                    "currentPasswordIncorrect": "현재 비밀번호가 올바르지 않습니다.",
                },
            },
        },
        "roles": {
            "MASTER": "마스터",
            "SUB_MANAGER": "서브 매니저",
            "PART_TIMER": "파트타이머",
        },
        "stores": {
            "created": "매장이 생성되었습니다.",
            "updated": "매장 정보가 수정되었습니다.",
            "roleGranted": "역할이 부여되었습니다.",
            "roleRevoked": "역할이 회수되었습니다.",
            "userDeactivated": "사용자가 비활성화되었습니다.",
            "userReactivated": "사용자가 다시 활성화되었습니다.",
            "userDemoted": "서브 매니저가 파트타이머로 변경되었습니다.",
            "userDeleted": "사용자가 삭제되었습니다.",
            "userProfileUpdated": "프로필이 성공적으로 업데이트되었습니다.",
            "temporaryAssigned": "임시 근무가 성공적으로 배치되었습니다.",
        },
        "invitations": {
            "created": "초대가 생성되었습니다.",
            "existingPending": "이미 대기 중인 초대가 있습니다.",
            "guestCreated": "게스트 사용자가 등록되었습니다.",
            "accepted": "초대를 수락했습니다.",
            "cancelled": "초대가 취소되었습니다.",
            "resent": "초대가 재전송되었습니다.",
            "existingUser": "기존 사용자에게 매장 초대가 완료되었습니다.",
            "status": {
                "valid": "유효한 초대입니다.",
                "cancelled": "취소된 초대입니다.",
                "used": "이미 수락된 초대입니다.",
                "expired": "만료된 초대입니다.",
            },
        },
        "schedule": {
            "errors": {
                "endAfterStart": "종료 시간은 시작 시간보다 늦어야 합니다.",
                "underMinTarget": "해당 시간대에 근무 항목이나 인원 목표가 없습니다.",
                "insufficientRoleCoverage": "역할 인원이 부족합니다.",
                "roleValidationError": "역할 검증 중 오류가 발생했습니다.",
            },
            "copied": "스케줄이 복사되었습니다.",
            "nothingToCopy": "복사할 스케줄이 없습니다.",
            "availabilityRemoved": "출근 불가 등록이 삭제되었습니다.",
            "autoAssigned": "{count}건의 근무가 자동 배정되었습니다.",
        },
        "roleCoverage": {
            "allSatisfied": "모든 역할 요구 사항이 충족되었습니다.",
            "noRequirements": "역할 요구 사항이 없습니다.",
            "insufficient": "역할 인원 부족: {roles}",
            "count": "{name}: {current}/{required}명",
        },
    },
    "en": {
        "errors": {
            "authRequired": "Authentication required",
            "insufficientPermissions": "Insufficient permissions",
            "adminRequired": "Admin privileges required",
            "masterRequired": "Master privileges required",
            "invalidData": "Invalid input data.",
            "internal": "Internal server error",
            "notFound": "The requested item was not found.",
            "duplicate": "The item already exists.",
            "storeIdRequired": "store_id required",
            "idRequired": "id required",
            "workItemIdRequired": "work_item_id required",
            "bodyMustBeArray": "Request body must be an array.",
            "storeNotFound": "Store not found",
            "notStoreOwner": "Only the store owner can perform this action.",
            "userNotFound": "User not found",
            "roleNotFound": "User role not found",
            "storeUserNotFound": "Store user not found",
            "alreadyInactive": "User is already inactive.",
            "alreadyActive": "User is already active.",
            "notSubManager": "Only an active sub manager can be demoted.",
            "cannotDeleteSelf": "You cannot delete yourself.",
            "cannotDeleteMaster": "A master user cannot be deleted.",
            "alreadyDeleted": "User is already deleted.",
            "guestFieldsRequired": "Name, store and role are required for guests.",
            "emailFieldsRequired": "Email, store and role are required for invitations.",
            "guestExists": "A guest with the same name already exists.",
            "invitationNotFound": "Invitation not found",
            "invitationInvalid": "Invalid invitation.",
            "invitationExpired": "The invitation has expired.",
            "invitationNotPending": "Only pending invitations can be changed.",
            "invitationEmailFailed": "Failed to send the invitation email.",
            "jobRoleInUse": "A job role in use cannot be deleted.",
            "unavailableOnDate": "The user is marked unavailable on this date.",
            "assignedOnDate": "Cannot mark as unavailable: user already has assignments for this date",
            "invalidStoreUser": "Invalid user or user not found in store",
            "endAfterStart": "End time must be after start time.",
            "breakTooLong": "The unpaid break is longer than the shift.",
            "minExceedsMax": "Minimum headcount cannot exceed maximum headcount.",
            "refreshTokenMissing": "Refresh token missing.",
            "refreshFailed": "Failed to refresh the session.",
            "storeAccessDenied": "You do not have access to this store.",
            "cannotChangeRole": "You cannot change this user's role.",
            "startDateInPast": "The start date must be today or later.",
            "startBeforeEnd": "The start date must be before the end date.",
            "invalidDateRange": "The start date cannot be after the end date.",
            "profileUpdateFailed": "Failed to update the profile.",
            "temporaryAssignFailed": "Failed to assign temporary work.",
        },
        "validation": {
            "email": "Please enter a valid email address.",
            "passwordRequired": "Please enter your password.",
            "passwordMin8": "Password must be at least 8 characters.",
            "passwordMin6": "Password must be at least 6 characters.",
            "passwordLetterDigit": "Password must contain both letters and numbers.",
            "passwordMismatch": "Passwords do not match.",
            "closeEqualsOpen": "Closing time must differ from opening time.",
            "invalidDate": "Date must be in YYYY-MM-DD format.",
            "invalidTime": "Time must be in HH:mm format.",
            "jobRoleRequired": "Select at least one job role.",
        },
        "auth": {
            "login": {
                "successDescription": "You have signed in.",
                "error": {
                    "general": "An error occurred while signing in.",
                    "invalidCredentials": "Invalid email or password.",
                    "emailNotConfirmed": "Your email has not been confirmed.",
                    "tooManyRequests": "Too many requests. Please try again later.",
                    "userNotFound": "User not found.",
                },
            },
            "signup": {
                "success": "Your account has been created.",
                "checkEmail": "Please check your email to verify your account.",
                "error": {
                    "general": "An error occurred while signing up.",
                    "emailExists": "This email is already registered.",
                    "weakPassword": "The password does not meet the security requirements.",
                    "invalidEmail": "Invalid email address.",
                    "disabled": "Sign up is currently disabled.",
                },
            },
            "logout": {"success": "You have been signed out."},
            "refresh": {"success": "Session refreshed."},
            "updateRole": {"success": "User role updated successfully."},
            "promoteToMaster": {
                "success": "User promoted to master successfully.",
                "already": "User is already a master.",
            },
            "changePassword": {
                "success": "Your password has been changed.",
                "error": {
                    "currentPasswordIncorrect": "The current password is incorrect.",
                },
            },
        },
        "roles": {
            "MASTER": "Master",
            "SUB_MANAGER": "Sub Manager",
            "PART_TIMER": "Part Timer",
        },
        "stores": {
            "created": "Store created.",
            "updated": "Store updated.",
            "roleGranted": "Role granted.",
            "roleRevoked": "Role revoked.",
            "userDeactivated": "User deactivated.",
            "userReactivated": "User reactivated.",
            "userDemoted": "Sub manager demoted to part timer.",
            "userDeleted": "User deleted.",
            "userProfileUpdated": "Profile updated successfully.",
            "temporaryAssigned": "Temporary work assigned successfully.",
        },
        "invitations": {
            "created": "Invitation created.",
            "existingPending": "A pending invitation already exists.",
            "guestCreated": "Guest user created.",
            "accepted": "Invitation accepted.",
            "cancelled": "Invitation cancelled.",
            "resent": "Invitation resent.",
            "existingUser": "The existing user has been invited to the store.",
            "status": {
                "valid": "The invitation is valid.",
                "cancelled": "The invitation has been cancelled.",
                "used": "The invitation has already been accepted.",
                "expired": "The invitation has expired.",
            },
        },
        "schedule": {
            "errors": {
                "endAfterStart": "End time must be after start time.",
                "underMinTarget": "No work item or staffing target covers this time range.",
                "insufficientRoleCoverage": "Insufficient role coverage.",
                "roleValidationError": "An error occurred during role validation.",
            },
            "copied": "Schedules copied.",
            "nothingToCopy": "No schedules to copy",
            "availabilityRemoved": "Availability removed successfully",
            "autoAssigned": "{count} assignments created automatically.",
        },
        "roleCoverage": {
            "allSatisfied": "All role requirements are satisfied.",
            "noRequirements": "No role requirements found.",
            "insufficient": "Insufficient role coverage: {roles}",
            "count": "{name}: {current}/{required} people",
        },
    },
    "ja": {
        "errors": {
            "authRequired": "認証が必要です。",
            "insufficientPermissions": "権限が不足しています。",
            "adminRequired": "管理者権限が必要です。",
            "masterRequired": "マスター権限が必要です。",
            "invalidData": "入力データが正しくありません。",
            "internal": "サーバーエラーが発生しました。",
            "notFound": "指定された項目が見つかりません。",
            "duplicate": "既に存在する項目です。",
            "storeIdRequired": "store_idが必要です。",
            "idRequired": "idが必要です。",
            "workItemIdRequired": "work_item_idが必要です。",
            "bodyMustBeArray": "リクエスト本文は配列である必要があります。",
            "storeNotFound": "店舗が見つかりません。",
            "notStoreOwner": "店舗オーナーのみ実行できます。",
            "userNotFound": "ユーザーが見つかりません。",
            "roleNotFound": "ユーザーの役割が見つかりません。",
            "storeUserNotFound": "店舗ユーザーが見つかりません。",
            "alreadyInactive": "既に無効化されたユーザーです。",
            "alreadyActive": "既に有効なユーザーです。",
            "notSubManager": "有効なサブマネージャーのみ降格できます。",
            "cannotDeleteSelf": "自分自身は削除できません。",
            "cannotDeleteMaster": "マスターユーザーは削除できません。",
            "alreadyDeleted": "既に削除されたユーザーです。",
            "guestFieldsRequired": "ゲスト登録には名前、店舗、役割が必要です。",
            "emailFieldsRequired": "招待にはメール、店舗、役割が必要です。",
            "guestExists": "同じ名前のゲストが既に存在します。",
            "invitationNotFound": "招待が見つかりません。",
            "invitationInvalid": "無効な招待です。",
            "invitationExpired": "招待の有効期限が切れています。",
            "invitationNotPending": "保留中の招待のみ変更できます。",
            "invitationEmailFailed": "招待メールの送信に失敗しました。",
            "jobRoleInUse": "使用中の職務ロールは削除できません。",
            "unavailableOnDate": "この日は出勤不可として登録されています。",
            "assignedOnDate": "この日は既に割り当てがあるため出勤不可にできません。",
            "invalidStoreUser": "店舗に所属するユーザーが見つかりません。",
            "endAfterStart": "終了時刻は開始時刻より後である必要があります。",
            "breakTooLong": "休憩時間が勤務時間より長くなっています。",
            "minExceedsMax": "最小人数は最大人数を超えられません。",
            "refreshTokenMissing": "リフレッシュトークンがありません。",
            "refreshFailed": "セッションを更新できませんでした。",
            "storeAccessDenied": "この店舗へのアクセス権限がありません。",
            "cannotChangeRole": "このユーザーのロールは変更できません。",
            "startDateInPast": "開始日は今日以降である必要があります。",
            "startBeforeEnd": "開始日は終了日より前である必要があります。",
            "invalidDateRange": "開始日を終了日より後にすることはできません。",
            "profileUpdateFailed": "プロフィールを更新できませんでした。",
            "temporaryAssignFailed": "臨時勤務の配置に失敗しました。",
        },
        "validation": {
            "email": "有効なメールアドレスを入力してください。",
            "passwordRequired": "パスワードを入力してください。",
            "passwordMin8": "パスワードは8文字以上である必要があります。",
            "passwordMin6": "パスワードは6文字以上である必要があります。",
            "passwordLetterDigit": "パスワードには英字と数字の両方を含めてください。",
            "passwordMismatch": "パスワードが一致しません。",
            "closeEqualsOpen": "閉店時刻は開店時刻と異なる必要があります。",
            "invalidDate": "日付はYYYY-MM-DD形式で入力してください。",
            "invalidTime": "時刻はHH:mm形式で入力してください。",
            "jobRoleRequired": "職務ロールを1つ以上選択してください。",
        },
        "auth": {
            "login": {
                "successDescription": "ログインしました。",
                "error": {
                    "general": "ログイン中にエラーが発生しました。",
                    "invalidCredentials": "メールアドレスまたはパスワードが正しくありません。",
                    "emailNotConfirmed": "メール認証が完了していません。",
                    "tooManyRequests": "リクエストが多すぎます。しばらくしてから再試行してください。",
                    "userNotFound": "登録されていないユーザーです。",
                },
            },
            "signup": {
                "success": "会員登録が完了しました。",
                "checkEmail": "確認メールをご確認ください。",
                "error": {
                    "general": "会員登録中にエラーが発生しました。",
                    "emailExists": "既に登録されているメールアドレスです。",
                    "weakPassword": "パスワードがセキュリティ要件を満たしていません。",
                    "invalidEmail": "無効なメールアドレスです。",
                    "disabled": "現在、会員登録は無効になっています。",
                },
            },
            "logout": {"success": "ログアウトしました。"},
            "refresh": {"success": "セッションを更新しました。"},
            "updateRole": {"success": "ユーザーのロールを更新しました。"},
            "promoteToMaster": {
                "success": "マスターに昇格しました。",
                "already": "すでにマスターです。",
            },
            "changePassword": {
                "success": "パスワードを変更しました。",
                "error": {
                    "currentPasswordIncorrect": "現在のパスワードが正しくありません。",
                },
            },
        },
        "roles": {
            "MASTER": "マスター",
            "SUB_MANAGER": "サブマネージャー",
            "PART_TIMER": "パートタイマー",
        },
        "stores": {
            "created": "店舗を作成しました。",
            "updated": "店舗情報を更新しました。",
            "roleGranted": "役割を付与しました。",
            "roleRevoked": "役割を取り消しました。",
            "userDeactivated": "ユーザーを無効化しました。",
            "userReactivated": "ユーザーを再有効化しました。",
            "userDemoted": "サブマネージャーをパートタイマーに変更しました。",
            "userDeleted": "ユーザーを削除しました。",
            "userProfileUpdated": "プロフィールを更新しました。",
            "temporaryAssigned": "臨時勤務を配置しました。",
        },
        "invitations": {
            "created": "招待を作成しました。",
            "existingPending": "保留中の招待が既にあります。",
            "guestCreated": "ゲストユーザーを登録しました。",
            "accepted": "招待を承諾しました。",
            "cancelled": "招待を取り消しました。",
            "resent": "招待を再送信しました。",
            "existingUser": "既存ユーザーを店舗に招待しました。",
            "status": {
                "valid": "有効な招待です。",
                "cancelled": "取り消された招待です。",
                "used": "既に承諾された招待です。",
                "expired": "期限切れの招待です。",
            },
        },
        "schedule": {
            "errors": {
                "endAfterStart": "終了時刻は開始時刻より後である必要があります。",
                "underMinTarget": "この時間帯をカバーする勤務項目または人員目標がありません。",
                "insufficientRoleCoverage": "役割人員が不足しています。",
                "roleValidationError": "役割検証中にエラーが発生しました。",
            },
            "copied": "スケジュールをコピーしました。",
            "nothingToCopy": "コピーするスケジュールがありません。",
            "availabilityRemoved": "出勤不可登録を削除しました。",
            "autoAssigned": "{count}件の勤務を自動配置しました。",
        },
        "roleCoverage": {
            "allSatisfied": "すべての役割要件が満たされています。",
            "noRequirements": "役割要件がありません。",
            "insufficient": "役割人員不足: {roles}",
            "count": "{name}: {current}/{required}人",
        },
    },
}


def is_valid_locale(value: str | None) -> bool:
    return value in LOCALES


def normalize_locale(value: str | None) -> str:
    return value if is_valid_locale(value) else DEFAULT_LOCALE


def _lookup(catalog: dict[str, Any], key: str) -> str | None:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def t(key: str, locale: str | None = None, **params: Any) -> str:
    """Translate a dotted catalog key, interpolating ``{param}`` placeholders."""
    locale = normalize_locale(locale)
    message = _lookup(MESSAGES[locale], key)
    if message is None:
        message = _lookup(MESSAGES[DEFAULT_LOCALE], key)
    if message is None:
        return key
    if params:
        return message.format(**params)
    return message


def get_translations(locale: str | None) -> tuple[str, Callable[..., str]]:
    normalized = normalize_locale(locale)

    def translate(key: str, **params: Any) -> str:
        return t(key, normalized, **params)

    return normalized, translate


def parse_accept_language(header: str | None) -> str | None:
    """Primary subtag of the first Accept-Language entry."""
    if not header:
        return None
    first = header.split(",")[0].strip()
    return first.split(";")[0].split("-")[0].strip().lower() or None


def resolve_request_locale(request: Request, locale_param: str | None = None) -> str:
    """Locale for API responses: explicit > ?locale= > Accept-Language > default."""
    if locale_param and is_valid_locale(locale_param):
        return locale_param

    from_query = request.query_params.get("locale")
    if from_query and is_valid_locale(from_query):
        return from_query

    preferred = parse_accept_language(request.headers.get("accept-language"))
    if preferred and is_valid_locale(preferred):
        return preferred

    return DEFAULT_LOCALE


def detect_page_locale(request: Request) -> str:
    """Locale for page redirects: cookie > first supported Accept-Language > default."""
    cookie_locale = request.cookies.get(settings.LOCALE_COOKIE_NAME)
    if cookie_locale and is_valid_locale(cookie_locale):
        return cookie_locale

    header = request.headers.get("accept-language")
    if header:
        for entry in header.split(","):
            primary = entry.split(";")[0].split("-")[0].strip().lower()
            if is_valid_locale(primary):
                return primary

    return DEFAULT_LOCALE


def locale_cookie_kwargs(locale: str) -> dict[str, Any]:
    return {
        "key": settings.LOCALE_COOKIE_NAME,
        "value": normalize_locale(locale),
        "max_age": settings.LOCALE_COOKIE_MAX_AGE,
        "path": "/",
        "samesite": "lax",
    }


def split_page_path(path: str) -> tuple[str | None, str]:
    """``/ko/schedule`` -> ``("ko", "/schedule")``; no locale prefix -> ``(None, path)``."""
    segments = path.split("/", 2)
    if len(segments) > 1 and is_valid_locale(segments[1]):
        rest = "/" + segments[2] if len(segments) > 2 else "/"
        return segments[1], rest
    return None, path
