"""Static sender identifier to display name table."""

SENDER_NAMES: dict[str, str] = {
    "0Tg8s7vP15A90NeUM4rnC": "籾山ひめり",
    "Ga_ddM7JhAnlRnkYXsDHG": "春野莉々",
    "WjMBMFAFdQ6zmzm34dpj5": "葉月紗蘭",
    "NSTLZy-J08YuwqPkkVpb2": "城月菜央",
    "6lToHXxrSpkyDT9jmPUOE": "たかねこファンクラブ運営",
    "jv8afDOWLZqPpdJ6Mlymq": "星谷美来",
    "a4npPurePgMCD5wEmekQO": "東山恵里沙",
    "2Ssu8-WzAOXlFZkeD01VU": "松本ももな",
    "SKuzAY-gIlD25a5-yGmhZ": "日向端ひな",
    "3-3vzS6FMV9lCvNjGscEg": "橋本桃呼",
    "VaKS0gcqUZTDi_asf5Xn2": "涼海すう",
}


def resolve_sender_name(sender_id: str, names: dict[str, str] | None = None) -> str:
    """
    Look up a sender's display name.

    Args:
        sender_id: Sender identifier from the detail payload
        names: Lookup table (defaults to SENDER_NAMES)

    Returns:
        Display name, or the identifier itself when unmapped
    """
    table = SENDER_NAMES if names is None else names
    return table.get(sender_id, sender_id)
