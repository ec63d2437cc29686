"""Starter instrument catalog, inserted on first startup.

Instrument ids are UUIDv5 of the symbol, so every deployment prices the
same instrument along the same path.
"""
import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.models.instrument import Instrument
from stocksense.simulation import constants as C

log = logging.getLogger(__name__)

CATALOG_NAMESPACE = uuid.UUID("6f1c4d2e-8b7a-5c3f-9e21-0d4a7b9c1e58")


def instrument_id(symbol: str) -> str:
    return str(uuid.uuid5(CATALOG_NAMESPACE, symbol))


# (symbol, name, sector, industry, risk level, base price)
STOCKS = [
    ("RELIANCE", "Reliance Industries", "Energy", "Oil & Gas", C.RISK_MEDIUM, 2450.00),
    ("TCS", "Tata Consultancy Services", "Technology", "IT Services", C.RISK_LOW, 3650.00),
    ("INFY", "Infosys", "Technology", "IT Services", C.RISK_LOW, 1480.00),
    ("HDFCBANK", "HDFC Bank", "Finance", "Banking", C.RISK_LOW, 1620.00),
    ("ICICIBANK", "ICICI Bank", "Finance", "Banking", C.RISK_MEDIUM, 945.00),
    ("HINDUNILVR", "Hindustan Unilever", "Consumer Goods", "FMCG", C.RISK_LOW, 2560.00),
    ("ITC", "ITC Limited", "Consumer Goods", "FMCG", C.RISK_LOW, 435.00),
    ("BHARTIARTL", "Bharti Airtel", "Telecom", "Telecommunications", C.RISK_MEDIUM, 890.00),
    ("MARUTI", "Maruti Suzuki", "Automobile", "Passenger Vehicles", C.RISK_MEDIUM, 10250.00),
    ("TATAMOTORS", "Tata Motors", "Automobile", "Commercial Vehicles", C.RISK_HIGH, 620.00),
    ("SUNPHARMA", "Sun Pharmaceutical", "Healthcare", "Pharmaceuticals", C.RISK_MEDIUM, 1150.00),
    ("LT", "Larsen & Toubro", "Infrastructure", "Engineering", C.RISK_MEDIUM, 2980.00),
    ("ADANIENT", "Adani Enterprises", "Infrastructure", "Conglomerate", C.RISK_HIGH, 2380.00),
    ("TATASTEEL", "Tata Steel", "Metals", "Steel", C.RISK_HIGH, 128.00),
    ("ZOMATO", "Zomato", "Technology", "Food Delivery", C.RISK_HIGH, 118.00),
]

# (symbol, name, category, amc, nav, expense ratio, risk level, 1y, 3y, 5y, aum, description)
MUTUAL_FUNDS = [
    ("AXISBLU", "Axis Bluechip Fund", C.CATEGORY_LARGE_CAP, "Axis Mutual Fund", 52.45, 1.65, "Moderate", 15.2, 12.8, 14.5, "₹35,000 Cr", "Invests in top 100 companies by market cap"),
    ("HDFCTOP", "HDFC Top 100 Fund", C.CATEGORY_LARGE_CAP, "HDFC Mutual Fund", 78.32, 1.82, "Moderate", 18.5, 14.2, 16.1, "₹28,500 Cr", "Focuses on blue-chip companies with strong fundamentals"),
    ("ICICIBLU", "ICICI Pru Bluechip Fund", C.CATEGORY_LARGE_CAP, "ICICI Prudential", 68.90, 1.75, "Moderate", 16.8, 13.5, 15.2, "₹42,000 Cr", "Large-cap focused with quality stocks"),
    ("SBIBLU", "SBI Bluechip Fund", C.CATEGORY_LARGE_CAP, "SBI Mutual Fund", 64.25, 1.58, "Moderate", 14.9, 11.8, 13.8, "₹38,000 Cr", "Invests in established market leaders"),
    ("MIRLRG", "Mirae Asset Large Cap", C.CATEGORY_LARGE_CAP, "Mirae Asset", 89.45, 1.52, "Moderate", 19.2, 15.6, 17.3, "₹32,000 Cr", "Growth-oriented large-cap strategy"),
    ("KOTBLU", "Kotak Bluechip Fund", C.CATEGORY_LARGE_CAP, "Kotak Mahindra", 45.80, 1.68, "Moderate", 13.8, 10.9, 12.5, "₹22,000 Cr", "Conservative large-cap approach"),
    ("NIPLRG", "Nippon India Large Cap", C.CATEGORY_LARGE_CAP, "Nippon India", 58.65, 1.78, "Moderate", 17.1, 13.2, 14.8, "₹18,500 Cr", "Diversified large-cap portfolio"),
    ("ABFRONT", "Aditya Birla Frontline", C.CATEGORY_LARGE_CAP, "Aditya Birla", 72.40, 1.85, "Moderate", 16.4, 12.6, 14.1, "₹25,000 Cr", "Frontline equity fund"),
    ("TATALRG", "Tata Large Cap Fund", C.CATEGORY_LARGE_CAP, "Tata Mutual Fund", 42.15, 1.72, "Moderate", 15.6, 11.4, 13.2, "₹12,000 Cr", "Quality-focused large-cap fund"),
    ("UTIMST", "UTI Mastershare", C.CATEGORY_LARGE_CAP, "UTI Mutual Fund", 185.60, 1.45, "Moderate", 14.2, 10.5, 12.8, "₹15,000 Cr", "One of India's oldest equity funds"),

    ("HDFCMID", "HDFC Mid-Cap Opportunities", C.CATEGORY_MID_CAP, "HDFC Mutual Fund", 112.35, 1.92, "High", 24.5, 18.2, 20.5, "₹45,000 Cr", "Leading mid-cap fund with proven track record"),
    ("KOTEMR", "Kotak Emerging Equity", C.CATEGORY_MID_CAP, "Kotak Mahindra", 85.20, 1.78, "High", 22.8, 17.5, 19.2, "₹28,000 Cr", "Focuses on emerging mid-sized companies"),
    ("AXISMID", "Axis Midcap Fund", C.CATEGORY_MID_CAP, "Axis Mutual Fund", 72.45, 1.85, "High", 26.2, 19.8, 21.5, "₹22,000 Cr", "Quality mid-cap stock picker"),
    ("DSPMID", "DSP Midcap Fund", C.CATEGORY_MID_CAP, "DSP Mutual Fund", 98.60, 1.88, "High", 23.4, 16.9, 18.8, "₹18,000 Cr", "Consistent mid-cap performer"),
    ("NIPGROW", "Nippon India Growth Fund", C.CATEGORY_MID_CAP, "Nippon India", 2450.80, 1.75, "High", 21.6, 15.8, 17.5, "₹24,000 Cr", "Growth-focused mid-cap strategy"),
    ("SBIMAG", "SBI Magnum Midcap", C.CATEGORY_MID_CAP, "SBI Mutual Fund", 168.45, 1.82, "High", 25.8, 18.9, 20.2, "₹16,000 Cr", "Diversified mid-cap portfolio"),
    ("ICICIMID", "ICICI Pru Midcap Fund", C.CATEGORY_MID_CAP, "ICICI Prudential", 195.30, 1.95, "High", 20.4, 14.6, 16.8, "₹12,000 Cr", "Value-oriented mid-cap approach"),
    ("INVMID", "Invesco India Midcap", C.CATEGORY_MID_CAP, "Invesco Mutual Fund", 105.75, 1.90, "High", 27.5, 20.2, 22.1, "₹8,500 Cr", "High-conviction mid-cap picks"),
    ("TATAMID", "Tata Midcap Growth", C.CATEGORY_MID_CAP, "Tata Mutual Fund", 285.40, 1.88, "High", 22.1, 16.2, 18.4, "₹6,800 Cr", "Growth-oriented mid-cap fund"),
    ("MOTMID", "Motilal Oswal Midcap", C.CATEGORY_MID_CAP, "Motilal Oswal", 62.85, 1.72, "High", 28.9, 21.5, 23.2, "₹10,500 Cr", "Focused mid-cap portfolio"),

    ("SBISML", "SBI Small Cap Fund", C.CATEGORY_SMALL_CAP, "SBI Mutual Fund", 142.60, 1.95, "Very High", 32.5, 24.8, 28.2, "₹28,000 Cr", "Premier small-cap fund"),
    ("NIPSML", "Nippon India Small Cap", C.CATEGORY_SMALL_CAP, "Nippon India", 118.45, 1.88, "Very High", 35.2, 26.5, 29.8, "₹48,000 Cr", "Largest small-cap fund by AUM"),
    ("AXISSML", "Axis Small Cap Fund", C.CATEGORY_SMALL_CAP, "Axis Mutual Fund", 78.90, 1.92, "Very High", 29.8, 22.4, 25.6, "₹18,000 Cr", "Quality-focused small-cap picks"),
    ("HDFCSML", "HDFC Small Cap Fund", C.CATEGORY_SMALL_CAP, "HDFC Mutual Fund", 95.25, 1.85, "Very High", 28.4, 20.8, 24.2, "₹22,000 Cr", "Value-oriented small-cap strategy"),
    ("KOTSML", "Kotak Small Cap Fund", C.CATEGORY_SMALL_CAP, "Kotak Mahindra", 185.70, 1.90, "Very High", 31.6, 23.9, 27.1, "₹14,000 Cr", "Emerging small-cap opportunities"),
    ("DSPSML", "DSP Small Cap Fund", C.CATEGORY_SMALL_CAP, "DSP Mutual Fund", 132.40, 1.98, "Very High", 26.8, 19.5, 22.8, "₹12,000 Cr", "Diversified small-cap portfolio"),
    ("ICICISML", "ICICI Pru Smallcap Fund", C.CATEGORY_SMALL_CAP, "ICICI Prudential", 68.55, 1.92, "Very High", 33.4, 25.2, 28.5, "₹8,500 Cr", "Growth-focused small-cap fund"),
    ("TATASML", "Tata Small Cap Fund", C.CATEGORY_SMALL_CAP, "Tata Mutual Fund", 28.45, 1.85, "Very High", 30.2, 22.8, 26.4, "₹6,200 Cr", "New-age small-cap opportunities"),
    ("CANSML", "Canara Robeco Small Cap", C.CATEGORY_SMALL_CAP, "Canara Robeco", 32.80, 1.88, "Very High", 34.8, 26.1, 29.2, "₹9,800 Cr", "Consistent small-cap performer"),
    ("QNTSML", "Quant Small Cap Fund", C.CATEGORY_SMALL_CAP, "Quant Mutual Fund", 195.60, 1.75, "Very High", 42.5, 32.8, 35.5, "₹18,500 Cr", "High-momentum small-cap strategy"),
]

# (symbol, name, tracking index, amc, nav, expense ratio, tracking error, 1y, 3y, 5y, aum, description)
INDEX_FUNDS = [
    ("UTINIF", "UTI Nifty 50 Index Fund", "Nifty 50", "UTI Mutual Fund", 145.80, 0.18, 0.05, 12.8, 10.2, 12.5, "₹15,000 Cr", "Tracks Nifty 50 index with minimal tracking error"),
    ("HDFCSEN", "HDFC Index Fund Sensex", "BSE Sensex", "HDFC Mutual Fund", 582.45, 0.20, 0.08, 13.2, 11.5, 13.8, "₹8,500 Cr", "Replicates BSE Sensex performance"),
    ("NIPNXT", "Nippon India Nifty Next 50", "Nifty Next 50", "Nippon India", 42.65, 0.25, 0.12, 18.5, 14.2, 16.8, "₹6,200 Cr", "Tracks next 50 companies after Nifty 50"),
    ("ICICIMID150", "ICICI Pru Nifty Midcap 150", "Nifty Midcap 150", "ICICI Prudential", 18.90, 0.30, 0.15, 22.4, 16.8, 19.5, "₹4,800 Cr", "Broad mid-cap market exposure"),
    ("MOTNASDAQ", "Motilal Oswal Nasdaq 100", "Nasdaq 100", "Motilal Oswal", 28.35, 0.50, 0.20, 28.5, 18.9, 22.4, "₹8,200 Cr", "US tech giants exposure for Indian investors"),
]


def build_catalog() -> list[Instrument]:
    instruments = []
    for symbol, name, sector, industry, risk, price in STOCKS:
        instruments.append(Instrument(
            id=instrument_id(symbol), kind=C.KIND_STOCK, symbol=symbol, name=name,
            base_price=price, risk_category=risk, risk_level=risk,
            sector=sector, industry=industry, market_cap="Large Cap",
        ))
    for (symbol, name, category, amc, nav, expense, risk, r1, r3, r5,
         aum, description) in MUTUAL_FUNDS:
        instruments.append(Instrument(
            id=instrument_id(symbol), kind=C.KIND_MUTUAL_FUND, symbol=symbol, name=name,
            base_price=nav, risk_category=category, risk_level=risk,
            amc=amc, expense_ratio=expense,
            one_year_return=r1, three_year_return=r3, five_year_return=r5,
            aum=aum, description=description,
        ))
    for (symbol, name, index, amc, nav, expense, tracking_error, r1, r3, r5,
         aum, description) in INDEX_FUNDS:
        instruments.append(Instrument(
            id=instrument_id(symbol), kind=C.KIND_INDEX_FUND, symbol=symbol, name=name,
            base_price=nav, risk_category=C.CATEGORY_INDEX, risk_level="Low",
            amc=amc, tracking_index=index, expense_ratio=expense,
            tracking_error=tracking_error,
            one_year_return=r1, three_year_return=r3, five_year_return=r5,
            aum=aum, description=description,
        ))
    return instruments


async def seed_catalog(db: AsyncSession) -> int:
    """Insert the starter catalog if the instruments table is empty."""
    count = (await db.execute(select(func.count()).select_from(Instrument))).scalar_one()
    if count:
        return 0
    instruments = build_catalog()
    db.add_all(instruments)
    await db.flush()
    log.info("Seeded %d instruments", len(instruments))
    return len(instruments)
