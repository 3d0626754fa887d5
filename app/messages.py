"""User-facing text, keyed by message id and locale."""

CATALOG: dict[str, dict[str, str]] = {
    "ja": {
        "auth_required": "認証が必要です",
        "session_missing": "認証情報が見つかりません。再度ログインしてください。",
        "fetch_failed": "Todoの取得に失敗しました",
        "add_failed": "追加時にエラーが発生しました",
        "add_busy": "追加処理中です。完了までお待ちください。",
        "update_failed": "更新に失敗しました",
        "delete_failed": "削除に失敗しました",
        "row_busy": "このTodoは処理中です。完了までお待ちください。",
        "not_found": "Todoが見つかりません",
        "title_required": "タイトルを入力してください",
        "login_success": "ログインに成功しました。",
        "login_failed": "ログインに失敗しました。",
        "signup_success": "アカウント作成に成功しました。メールを確認してください。",
        "signup_failed": "サインアップに失敗しました。",
        "password_mismatch": "パスワードが一致しません。",
        "logout_success": "ログアウトしました。",
        "empty_list": "Todoがありません。新しいTodoを追加してください。",
        "app_title": "Todoアプリ",
        "todos_heading": "Todos",
        "sign_in_heading": "アカウントにサインイン",
        "sign_up_heading": "アカウントを作成",
        "credentials_hint": "メールとパスワードを入力してください",
        "email": "メールアドレス",
        "password": "パスワード",
        "confirm_password": "パスワード（確認）",
        "login": "ログイン",
        "signup": "新規登録",
        "logout": "ログアウト",
        "new_todo": "新しいTODO",
        "add": "追加",
        "adding": "追加中…",
        "delete": "削除",
        "deleting": "削除中...",
        "retry": "再試行",
        "loading": "読み込み中...",
    },
    "en": {
        "auth_required": "Authentication required",
        "session_missing": "No credentials found. Please log in again.",
        "fetch_failed": "Failed to load todos",
        "add_failed": "Failed to add the todo",
        "add_busy": "A todo is already being added. Please wait.",
        "update_failed": "Failed to update the todo",
        "delete_failed": "Failed to delete the todo",
        "row_busy": "This todo is being updated. Please wait.",
        "not_found": "Todo not found",
        "title_required": "Please enter a title",
        "login_success": "Logged in.",
        "login_failed": "Login failed.",
        "signup_success": "Account created. Please check your email to confirm it.",
        "signup_failed": "Sign-up failed.",
        "password_mismatch": "Passwords do not match.",
        "logout_success": "Logged out.",
        "empty_list": "No todos yet. Add a new one.",
        "app_title": "Todo app",
        "todos_heading": "Todos",
        "sign_in_heading": "Sign in to your account",
        "sign_up_heading": "Create an account",
        "credentials_hint": "Enter your email and password",
        "email": "Email",
        "password": "Password",
        "confirm_password": "Password (again)",
        "login": "Log in",
        "signup": "Sign up",
        "logout": "Log out",
        "new_todo": "New todo",
        "add": "Add",
        "adding": "Adding…",
        "delete": "Delete",
        "deleting": "Deleting...",
        "retry": "Retry",
        "loading": "Loading...",
    },
}

DEFAULT_LOCALE = "ja"


def t(key: str, locale: str = DEFAULT_LOCALE) -> str:
    table = CATALOG.get(locale) or CATALOG[DEFAULT_LOCALE]
    return table.get(key) or CATALOG[DEFAULT_LOCALE][key]
