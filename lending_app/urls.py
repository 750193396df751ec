from django.urls import path

from .views import (
    ApplicationListView,
    ApproveApplicationView,
    BorrowerDetailView,
    BorrowerListView,
    BorrowerStatisticsView,
    DashboardStatsView,
    DepositView,
    DisburseLoanView,
    LoanCalculatorView,
    LoanDetailView,
    LoanListView,
    LoanScheduleView,
    MonthlyRepaymentReportView,
    OverdueListView,
    OverdueStatsView,
    RejectApplicationView,
    RepaymentDetailView,
    RepaymentListView,
    SavingsListView,
    WithdrawView,
)

urlpatterns = [
    path('borrowers', BorrowerListView.as_view(), name='borrower-list'),
    path('borrowers/<str:ref>', BorrowerDetailView.as_view(), name='borrower-detail'),
    path('borrowers/<str:ref>/statistics', BorrowerStatisticsView.as_view(), name='borrower-statistics'),
    path('applications', ApplicationListView.as_view(), name='application-list'),
    path('applications/<str:ref>/approve', ApproveApplicationView.as_view(), name='application-approve'),
    path('applications/<str:ref>/reject', RejectApplicationView.as_view(), name='application-reject'),
    path('loan-calculator', LoanCalculatorView.as_view(), name='loan-calculator'),
    path('loans', LoanListView.as_view(), name='loan-list'),
    path('loans/<str:ref>', LoanDetailView.as_view(), name='loan-detail'),
    path('loans/<str:ref>/disburse', DisburseLoanView.as_view(), name='loan-disburse'),
    path('loans/<str:ref>/schedule', LoanScheduleView.as_view(), name='loan-schedule'),
    path('repayments', RepaymentListView.as_view(), name='repayment-list'),
    path('repayments/<int:pk>', RepaymentDetailView.as_view(), name='repayment-detail'),
    path('overdue', OverdueListView.as_view(), name='overdue-list'),
    path('overdue/stats', OverdueStatsView.as_view(), name='overdue-stats'),
    path('savings', SavingsListView.as_view(), name='savings-list'),
    path('savings/<str:ref>/deposit', DepositView.as_view(), name='savings-deposit'),
    path('savings/<str:ref>/withdraw', WithdrawView.as_view(), name='savings-withdraw'),
    path('dashboard/stats', DashboardStatsView.as_view(), name='dashboard-stats'),
    path('reports/monthly-repayments', MonthlyRepaymentReportView.as_view(), name='report-monthly-repayments'),
]
