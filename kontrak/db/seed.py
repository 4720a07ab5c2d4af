# ------------------------------------------------------------------------
# File: seed.py
# Location: kontrak/db/seed.py
# Description:
#     Initial data for a fresh database: the administrator account, a
#     sample trader and the default investment consulting agreement
#     template. Every step checks for existing rows first, so running it
#     again is harmless.
# ------------------------------------------------------------------------

import os

from kontrak.core.auth import hash_password
from kontrak.core.renderer import extract_placeholders
from kontrak.db.models import Template, User, UserRole
from kontrak.logging_config import configure_logging

logger = configure_logging(name="kontrak.seed", logfile="kontrak.log", level=None)

DEFAULT_TEMPLATE_NAME = "Perjanjian Layanan Kerja Sama Konsultasi Investasi"
DEFAULT_TEMPLATE_DESCRIPTION = (
    "Template lengkap untuk perjanjian konsultasi investasi dengan "
    "PT. Konsultasi Profesional Indonesia"
)

DEFAULT_TEMPLATE_CONTENT = """\
# Perjanjian Layanan Kerja Sama Konsultasi Investasi

Nomor Kontrak: {{CONTRACT_NUMBER}}

## Pihak A: {{USER_NAME}}

Alamat: {{USER_ADDRESS}}
Email: {{USER_EMAIL}}
Telepon: {{USER_PHONE}}
Trading ID: {{TRADING_ID}}

## Pihak B: PT. Konsultasi Profesional Indonesia

Alamat: Tower 2 Lantai 17 Jl. H. R. Rasuna Said Blok X-5 No.Kav. 2-3,
RT.1/RW.2, Kuningan, Jakarta Selatan 12950

Kontak: Prof. Bima Agung Rachel
Telepon: +62 852 - 5852 - 8771

**Pihak A**, sebagai individu, setuju untuk menggunakan layanan analisis
pasar atau layanan konsultasi yang disediakan oleh **Pihak B**, PT.
Konsultasi Profesional Indonesia. Pihak B menyediakan layanan seperti
analisis pasar, konsultasi investasi, analisis produk, laporan riset
pasar, dsb. Untuk memajukan pembangunan dan kerja sama bersama yang
saling menguntungkan, dan berdasarkan prinsip kesetaraan dan saling
menghormati, kedua belah pihak menyepakati ketentuan-ketentuan berikut
untuk kerja sama ini, dan akan secara ketat mematuhinya.

## Pasal 1: Definisi Awal

1.1. Biaya konsultasi layanan merujuk pada investasi sebesar **{{AMOUNT}}** oleh
pelanggan. Anda dapat meminta Pihak B untuk melakukan analisis data,
laporan, dll.

1.2. Biaya transaksi merujuk pada biaya yang dibebankan oleh Pihak B.
Biaya ini dihitung berdasarkan jumlah transaksi tunggal sebesar **{{TRANSACTION_FEE}}**.

## Pasal 2: Konten Layanan dan Standar Tarif

2.1. Pihak B menyediakan analisis dan rekomendasi kepada Pihak A.

2.2. Pihak A dan B menyetujui metode dan tingkat pembayaran sebesar **{{PAYMENT_METHOD}}**.

2.3. Jika ada biaya tambahan dalam proses kerja sama, harus disetujui
bersama sebelumnya.

2.4. Laporan akhir yang disediakan Pihak B kepada Pihak A mencakup
informasi tentang tren industri, analisis pasar, dan opini profesional
lainnya.

2.5. Informasi yang disediakan oleh Pihak B harus dijaga kerahasiaannya
oleh Pihak A dan tidak boleh disebarkan tanpa izin tertulis.

## Pasal 3: Metode Penyelesaian

3.1. Pihak A akan menyelesaikan pembayaran untuk layanan dan biaya
transaksi sesuai perjanjian dalam waktu **{{PAYMENT_TERMS}}** hari.

3.2. Jika pembayaran tidak dilakukan tepat waktu, Pihak A akan dikenakan
denda harian sebesar **{{LATE_FEE}}**.

3.3. Jika pembayaran tetap tidak dilakukan dalam 30 hari, maka Pihak B
dapat menangguhkan layanan.

3.4. Pihak A bertanggung jawab atas biaya tambahan akibat kegagalan
pembayaran.

3.5. Jika terjadi pembatalan, biaya layanan yang sudah dibayarkan tidak
dapat dikembalikan kecuali jika disepakati lain.

## Pasal 4: Hak dan Kewajiban Pihak A

4.1. Pihak A berhak meminta, mengunduh, dan mengecek data yang diberikan
oleh Pihak B.

4.2. Pihak A harus mengecek dan mencatat data modal secara harian.

4.3. Jika Pihak A tidak puas terhadap layanan, harus disampaikan dalam
waktu 3 hari.

4.4. Pihak A wajib memberikan data dasar transaksi dengan benar kepada
Pihak B.

4.5. Jika ada perubahan musiman atau lainnya, Pihak A dapat meminta
pengakhiran layanan.

4.6. Pihak A menjamin bahwa dana yang digunakan berasal dari sumber yang
sah.

4.7. Pihak A tidak boleh menggunakan informasi layanan ini untuk
tindakan yang melanggar hukum seperti pencucian uang, perjudian,
penghindaran pajak, dll.

## Pasal 5: Hak dan Kewajiban Pihak B

5.1. Pihak B harus menangani permintaan konsultasi dari Pihak A sesuai
perjanjian.

5.2. Pihak B bertanggung jawab memberikan informasi konsultasi pasar
secara akurat.

5.3. Dalam jam kerja normal, Pihak B akan merespons permintaan dari
Pihak A secara wajar.

5.4. Pihak B berhak untuk meningkatkan layanan dan menyesuaikan konten.

5.5. Pihak B dapat menghentikan layanan jika Pihak A tidak membayar atau
bertindak mencurigakan.

5.6. Pihak B tidak boleh menipu atau berkolusi dengan pihak lain.

5.7. Pihak B tidak bertanggung jawab atas risiko operasional dari
keputusan investasi yang dilakukan Pihak A.

5.8. Pihak B dapat menolak transaksi yang melanggar hukum atau
mencurigakan.

5.9. Sengketa diselesaikan melalui negosiasi damai.

5.10. Jika Pihak B tidak dapat memberikan informasi yang akurat, maka
Pihak A dapat mengajukan keluhan.

5.11. Layanan ini tidak boleh melanggar hukum atau peraturan negara
manapun.

5.12. Pihak B berhak mengakhiri perjanjian jika Pihak A tidak
memberitahukan perubahan penting.

5.13. Jika Pihak A melanggar hukum atau menyebabkan kerugian, Pihak B
dapat menuntut ganti rugi.

## Pasal 6: Klausul Kerahasiaan

6.1. Informasi yang diperoleh oleh kedua belah pihak selama masa kerja
sama harus dijaga kerahasiaannya dan tidak boleh disebarkan kepada pihak
ketiga tanpa izin tertulis.

6.2. Kerahasiaan ini meliputi, namun tidak terbatas pada: Informasi
pelanggan, Data operasional, Informasi strategi bisnis, dan Data
investasi.

6.3. Semua informasi tetap milik pihak yang memberikannya dan tidak
dapat digunakan tanpa izin.

6.4. Klausul ini tetap berlaku meskipun perjanjian berakhir.

---

**Tertanda di Jakarta, pada tanggal: {{CONTRACT_DATE}}**

**Perwakilan Pihak B:**
Koh Seng Seng
(PT. Konsultasi Profesional Indonesia)

**Pihak A:**
{{USER_NAME}}
Trading ID: {{TRADING_ID}}

*Tanda tangan digital telah diverifikasi pada {{SIGNED_DATE}}*
"""


def _ensure_user(session, email, **fields):
    user = session.query(User).filter_by(email=email).first()
    if user:
        return user, False
    user = User(email=email, **fields)
    session.add(user)
    session.flush()
    return user, True


def seed_initial_data(session, rounds: int = None):
    """Create the default admin, sample trader and template if missing."""
    logger.info("Setting up initial data...")

    admin, created = _ensure_user(
        session,
        "admin@tradestation.com",
        name="Admin TradeStation",
        username="admin",
        password_hash=hash_password(os.getenv("SEED_ADMIN_PASSWORD", "admin123"), rounds),
        role=UserRole.admin,
        trading_account="ADM001",
        phone="+62812-3456-7890",
        balance=0,
    )
    if created:
        logger.info("Default admin user created")

    _, created = _ensure_user(
        session,
        "hermanzal@trader.com",
        name="Herman Zaldivar",
        username="hermanzal",
        password_hash=hash_password(os.getenv("SEED_TRADER_PASSWORD", "trader123"), rounds),
        role=UserRole.user,
        trading_account="TRD001",
        phone="+62812-8888-9999",
        balance=50000000,
    )
    if created:
        logger.info("Sample user created")

    if not session.query(Template).filter_by(name=DEFAULT_TEMPLATE_NAME).first():
        session.add(Template(
            name=DEFAULT_TEMPLATE_NAME,
            category="investment",
            description=DEFAULT_TEMPLATE_DESCRIPTION,
            content=DEFAULT_TEMPLATE_CONTENT,
            variables=extract_placeholders(DEFAULT_TEMPLATE_CONTENT),
            created_by=admin.id,
        ))
        logger.info("Default template created")

    session.commit()
    logger.info("Initial data setup completed")
